"""
Service Catalog

Static mapping of service ids to duration, resource kinds and composite
components. Resource requirements are normalized into a frozenset of kinds
when the catalog is built; composite services take the union of their
components' kinds.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from .errors import InvalidService


@dataclass(frozen=True)
class Service:
	"""Servicio inmutable del catálogo."""

	id: str
	name: str
	duration: int
	resources: FrozenSet[str]
	components: Tuple[str, ...] = ()

	@property
	def is_composite(self) -> bool:
		return bool(self.components)


@dataclass(frozen=True)
class ServiceDefinition:
	"""
	Definición cruda de un servicio, tal como se escribe en la configuración.

	``resources`` puede ser un solo kind o una lista; se normaliza al
	construir el catálogo.
	"""

	id: str
	name: str
	duration: int
	resources: Union[str, Iterable[str], None] = None
	components: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ComponentPlan:
	"""Un componente de un servicio con la duración que le corresponde."""

	service: Service
	duration: int


# Duración fija por resource kind dentro de un servicio compuesto.
# El componente restante recibe la duración sobrante.
CompositeSplits = Mapping[str, Mapping[str, int]]


def _normalize_resources(resources: Union[str, Iterable[str], None]) -> FrozenSet[str]:
	if resources is None:
		return frozenset()
	if isinstance(resources, str):
		return frozenset([resources])
	return frozenset(resources)


class ServiceCatalog:
	"""
	Catálogo de servicios con resolución de componentes a un nivel.

	Valida al construirse:
	- duraciones positivas
	- resource kinds conocidos
	- componentes existentes y no compuestos
	- que la duración planificada de los componentes sume la duración total
	"""

	def __init__(
		self,
		definitions: Iterable[ServiceDefinition],
		resource_kinds: Iterable[str],
		composite_splits: Optional[CompositeSplits] = None
	):
		self.resource_kinds = frozenset(resource_kinds)
		self.composite_splits = MappingProxyType(
			{key: MappingProxyType(dict(value)) for key, value in (composite_splits or {}).items()}
		)

		definitions = list(definitions)
		by_id = {d.id: d for d in definitions}
		if len(by_id) != len(definitions):
			raise ValueError("Duplicate service id in catalog")

		services: Dict[str, Service] = {}

		# 1. Servicios simples
		for definition in definitions:
			if definition.components:
				continue
			services[definition.id] = self._build_simple(definition)

		# 2. Servicios compuestos (componentes a un solo nivel)
		for definition in definitions:
			if not definition.components:
				continue
			for component_id in definition.components:
				if component_id not in services or services[component_id].is_composite:
					raise ValueError(
						f"Composite '{definition.id}' references unknown or composite component '{component_id}'"
					)
			resources = frozenset().union(*(services[c].resources for c in definition.components))
			if definition.duration <= 0:
				raise ValueError(f"Service '{definition.id}' must have a positive duration")
			services[definition.id] = Service(
				id=definition.id,
				name=definition.name,
				duration=definition.duration,
				resources=resources,
				components=tuple(definition.components),
			)

		self._services = MappingProxyType(services)
		self._by_name = MappingProxyType({s.name: s for s in services.values()})

		# 3. Validar que los splits cuadren con la duración total
		for service in services.values():
			if service.is_composite:
				planned = sum(part.duration for part in self.plan_components(service))
				if planned != service.duration:
					raise ValueError(
						f"Components of '{service.id}' plan {planned} minutes, expected {service.duration}"
					)

	def _build_simple(self, definition: ServiceDefinition) -> Service:
		resources = _normalize_resources(definition.resources)
		if definition.duration <= 0:
			raise ValueError(f"Service '{definition.id}' must have a positive duration")
		if not resources:
			raise ValueError(f"Service '{definition.id}' must require at least one resource kind")
		unknown = resources - self.resource_kinds
		if unknown:
			raise ValueError(f"Service '{definition.id}' uses unknown resource kinds: {sorted(unknown)}")

		return Service(
			id=definition.id,
			name=definition.name,
			duration=definition.duration,
			resources=resources,
		)

	def __contains__(self, service_id: str) -> bool:
		return service_id in self._services

	def __iter__(self):
		return iter(self._services.values())

	def __len__(self) -> int:
		return len(self._services)

	def lookup(self, service_id: str) -> Service:
		"""
		Obtiene un servicio por id.

		Raises:
			InvalidService: si el id no existe en el catálogo
		"""
		try:
			return self._services[service_id]
		except KeyError:
			raise InvalidService(f"Unknown service '{service_id}'", service_id=service_id) from None

	def resolve_label(self, label: str) -> Optional[Service]:
		"""Busca un servicio por id o por nombre visible (labels del calendario)."""
		label = (label or "").strip()
		return self._services.get(label) or self._by_name.get(label)

	def components_of(self, service: Service) -> List[Service]:
		"""Componentes de un servicio; un servicio simple es su propio componente."""
		if not service.is_composite:
			return [service]
		return [self._services[component_id] for component_id in service.components]

	def plan_components(self, service: Service) -> List[ComponentPlan]:
		"""
		Duración de cada componente de un servicio.

		Si el compuesto tiene una regla en ``composite_splits``, los componentes
		cuyo resource kind está en la regla reciben la duración fija y el resto
		recibe lo que sobra de la duración total. Sin regla se usa la duración
		de catálogo de cada componente.
		"""
		components = self.components_of(service)
		if not service.is_composite:
			return [ComponentPlan(service=service, duration=service.duration)]

		split = self.composite_splits.get(service.id)
		if not split:
			return [ComponentPlan(service=c, duration=c.duration) for c in components]

		fixed: Dict[int, int] = {}
		for index, component in enumerate(components):
			for kind in component.resources:
				if kind in split:
					fixed[index] = split[kind]
					break

		free = [index for index in range(len(components)) if index not in fixed]
		if len(free) != 1:
			raise ValueError(
				f"Split rule for '{service.id}' must leave exactly one component for the remaining duration"
			)

		remainder = service.duration - sum(fixed.values())
		if remainder <= 0:
			raise ValueError(f"Split rule for '{service.id}' leaves no time for the remaining component")

		return [
			ComponentPlan(service=component, duration=fixed.get(index, remainder))
			for index, component in enumerate(components)
		]


# Catálogo de la tienda
# ---------------------

DEFAULT_RESOURCE_CAPACITIES = {
	"body": 3,
	"foot": 2,
}

DEFAULT_SERVICES = (
	ServiceDefinition("foot_40", "腳底按摩40分", 40, "foot"),
	ServiceDefinition("foot_60", "腳底按摩60分", 60, "foot"),
	ServiceDefinition("body_60", "全身指壓60分", 60, "body"),
	ServiceDefinition("body_90", "全身指壓90分", 90, "body"),
	ServiceDefinition("body_120", "全身指壓120分", 120, "body"),
	ServiceDefinition("oil_90", "精油紓壓90分", 90, ["body"]),
	ServiceDefinition("combo_100", "腳底+全身100分", 100, components=("foot_40", "body_60")),
	ServiceDefinition("combo_130", "腳底+全身130分", 130, components=("foot_40", "body_90")),
	ServiceDefinition("combo_160", "腳底+全身160分", 160, components=("foot_40", "body_120")),
)

# El componente de pies siempre recibe 40 minutos
DEFAULT_COMPOSITE_SPLITS = {
	"combo_100": {"foot": 40},
	"combo_130": {"foot": 40},
	"combo_160": {"foot": 40},
}
