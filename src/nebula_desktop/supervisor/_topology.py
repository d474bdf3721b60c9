"""Static service topology.

The stack is one fixed set of services. This module is the single lookup
table for service metadata (names, ports, images, dependencies); nothing
else maps service names by hand.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import final

import rustworkx as rx

from nebula_desktop.exceptions import ServiceNotFoundError, TopologyError


class ServiceRole(StrEnum):
    """Role a service plays in the stack."""

    META = "meta"
    STORAGE = "storage"
    GRAPH = "graph"
    UI = "ui"
    AUXILIARY = "auxiliary"


@dataclass(frozen=True, slots=True)
class ServiceDefinition:
    """Immutable definition of one service.

    Attributes:
        name: Canonical identity, also the compose service name.
        display_name: Human-readable name.
        role: Role in the stack.
        image: Container image reference.
        ports: Declared ports.
        health_port: Host port of the HTTP status endpoint, if any.
        health_path: Path of the HTTP status endpoint.
        required_ports: Host ports that must be free before a stack start.
        depends_on: Identities of services this one depends on.
        native_health_check: Whether the container has an engine health check.
    """

    name: str
    display_name: str
    role: ServiceRole
    image: str
    ports: tuple[int, ...] = ()
    health_port: int | None = None
    health_path: str = "/status"
    required_ports: tuple[int, ...] = ()
    depends_on: tuple[str, ...] = ()
    native_health_check: bool = True

    @property
    def is_auxiliary(self) -> bool:
        """Return True for helpers outside convergence and the snapshot."""
        return self.role is ServiceRole.AUXILIARY

    def matches(self, name: str) -> bool:
        """Return True if `name` is this service's identity or display name."""
        folded = name.strip().casefold()
        return folded in {self.name.casefold(), self.display_name.casefold()}


DEFAULT_SERVICES: tuple[ServiceDefinition, ...] = (
    ServiceDefinition(
        name="metad",
        display_name="Meta Service",
        role=ServiceRole.META,
        image="vesoft/nebula-metad:v3.8.0",
        ports=(9559, 19559, 19560),
        health_port=19559,
        required_ports=(9559, 19559),
    ),
    ServiceDefinition(
        name="storaged",
        display_name="Storage Service",
        role=ServiceRole.STORAGE,
        image="vesoft/nebula-storaged:v3.8.0",
        ports=(9779, 19779, 19780),
        health_port=19779,
        required_ports=(9779, 19779),
        depends_on=("metad",),
    ),
    ServiceDefinition(
        name="graphd",
        display_name="Graph Service",
        role=ServiceRole.GRAPH,
        image="vesoft/nebula-graphd:v3.8.0",
        ports=(9669, 19669, 19670),
        health_port=19669,
        required_ports=(9669, 19669),
        depends_on=("storaged",),
    ),
    ServiceDefinition(
        name="studio",
        display_name="Studio",
        role=ServiceRole.UI,
        image="vesoft/nebula-graph-studio:v3.10.0",
        ports=(7001,),
        health_port=7001,
        health_path="/",
        required_ports=(7001,),
        depends_on=("graphd",),
    ),
    ServiceDefinition(
        name="storage-activator",
        display_name="Storage Activator",
        role=ServiceRole.AUXILIARY,
        image="vesoft/nebula-console:nightly",
        depends_on=("graphd",),
        native_health_check=False,
    ),
)


def _start_order(definitions: Sequence[ServiceDefinition]) -> tuple[str, ...]:
    """Sort service identities so dependencies come first.

    Ties are broken by declaration order so the result is deterministic.

    Raises:
        TopologyError: On a dangling dependency or a dependency cycle.
    """
    graph: rx.PyDiGraph[str, None] = rx.PyDiGraph(check_cycle=False)
    node_indices: dict[str, int] = {}
    position: dict[str, int] = {}

    for index, definition in enumerate(definitions):
        node_indices[definition.name] = graph.add_node(definition.name)
        position[definition.name] = index

    # Edge dependency -> dependent
    for definition in definitions:
        for dependency in definition.depends_on:
            if dependency not in node_indices:
                msg = (
                    f"Service '{definition.name}' depends on unknown "
                    f"service '{dependency}'"
                )
                raise TopologyError(msg, service_name=definition.name)
            _ = graph.add_edge(
                node_indices[dependency], node_indices[definition.name], None
            )

    cycle_edges = rx.digraph_find_cycle(graph)
    if cycle_edges:
        cycle = [graph[source] for source, _ in cycle_edges]
        cycle.append(graph[cycle_edges[-1][1]])
        msg = f"Service dependency cycle: {' -> '.join(cycle)}"
        raise TopologyError(msg, service_name=cycle[0])

    ordered = rx.lexicographical_topological_sort(
        graph, key=lambda name: f"{position[name]:04d}"
    )
    return tuple(ordered)


@final
class ServiceTopology:
    """Validated, read-only view over a set of service definitions.

    Iteration yields definitions in start order (dependencies first).
    """

    __slots__ = ("_definitions", "_order")

    def __init__(self, definitions: Sequence[ServiceDefinition] = DEFAULT_SERVICES) -> None:
        """Validate the definitions and compute the start order.

        Args:
            definitions: Service definitions, in declaration order.

        Raises:
            TopologyError: On duplicate identities, a dangling dependency,
                or a dependency cycle.
        """
        self._definitions: dict[str, ServiceDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                msg = f"Duplicate service definition '{definition.name}'"
                raise TopologyError(msg, service_name=definition.name)
            self._definitions[definition.name] = definition
        self._order = _start_order(definitions)

    def __iter__(self) -> Iterator[ServiceDefinition]:
        return (self._definitions[name] for name in self._order)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return any(d.matches(name) for d in self._definitions.values())

    def get(self, name: str) -> ServiceDefinition:
        """Look up a service by identity or display name, case-insensitively.

        Raises:
            ServiceNotFoundError: If nothing matches.
        """
        definition = self._definitions.get(name)
        if definition is not None:
            return definition
        for candidate in self._definitions.values():
            if candidate.matches(name):
                return candidate
        msg = f"Service '{name}' not found"
        raise ServiceNotFoundError(msg, service_name=name)

    @property
    def start_order(self) -> tuple[str, ...]:
        """Return every identity, dependencies first."""
        return self._order

    @property
    def stop_order(self) -> tuple[str, ...]:
        """Return every identity, dependents first."""
        return tuple(reversed(self._order))

    @property
    def supervised(self) -> tuple[ServiceDefinition, ...]:
        """Return the non-auxiliary services, in start order."""
        return tuple(d for d in self if not d.is_auxiliary)

    @property
    def images(self) -> dict[str, str]:
        """Return the image reference per identity, in start order."""
        return {d.name: d.image for d in self}
