"""Gauges reporting the state of special resources, and a registry to gather them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

CREATED_SPECIAL_RESOURCES_QUERY = "sro_managed_resources_total"
COMPLETED_STATES_QUERY = "sro_states_completed_info"
COMPLETED_KIND_QUERY = "sro_kind_completed_info"
USED_NODES_QUERY = "sro_used_nodes"
UPGRADE_ALERT_QUERY = "sro_upgrade_alert"


@dataclass(frozen=True)
class Sample:
    """One value of a metric and the label values it is reported under."""

    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0


@dataclass(frozen=True)
class MetricFamily:
    """All samples of one metric name."""

    name: str
    help: str
    samples: tuple[Sample, ...]


class Gauge:
    """A single value that can go up and down."""

    def __init__(self, name: str, help: str) -> None:
        self.name = name
        self.help = help
        self.value = 0.0

    def set(self, value: float) -> None:
        """Set the gauge to ``value``."""
        self.value = float(value)

    def _samples(self) -> tuple[Sample, ...]:
        return (Sample({}, self.value),)


class GaugeVec:
    """Gauges sharing a name, told apart by label values."""

    def __init__(self, name: str, help: str, label_names: list[str] | tuple[str, ...]) -> None:
        self.name = name
        self.help = help
        self.label_names = tuple(label_names)
        self._children: dict[tuple[str, ...], Gauge] = {}

    def labels(self, *args: str) -> Gauge:
        """Return the gauge for these label values, creating it on first use."""
        if len(args) != len(self.label_names):
            raise ValueError(
                f"{self.name}: expected {len(self.label_names)} label values, got {len(args)}"
            )
        key = tuple(str(arg) for arg in args)
        child = self._children.get(key)
        if child is None:
            child = self._children[key] = Gauge(self.name, self.help)
        return child

    def _samples(self) -> tuple[Sample, ...]:
        return tuple(
            Sample(dict(zip(self.label_names, key)), gauge.value)
            for key, gauge in sorted(self._children.items())
        )


Collector = Union[Gauge, GaugeVec]


class Registry:
    """A set of collectors with unique names."""

    def __init__(self) -> None:
        self._collectors: dict[str, Collector] = {}

    def register(self, *args: Collector) -> None:
        """Add collectors; raise ValueError if a name is already registered."""
        for collector in args:
            if collector.name in self._collectors:
                raise ValueError(
                    f"duplicate metrics collector registration attempted: {collector.name}"
                )
            self._collectors[collector.name] = collector

    def gather(self) -> list[MetricFamily]:
        """Return the families that have samples, sorted by name."""
        families = []
        for name in sorted(self._collectors):
            collector = self._collectors[name]
            samples = collector._samples()
            if samples:
                families.append(MetricFamily(name, collector.help, samples))
        return families


class Metrics:
    """The operator's metrics, registered in one registry."""

    def __init__(self, registry: Registry | None = None) -> None:
        self.registry = registry if registry is not None else Registry()
        self._created_special_resources = Gauge(
            CREATED_SPECIAL_RESOURCES_QUERY, "Number of created SpecialResources"
        )
        self._completed_states = GaugeVec(
            COMPLETED_STATES_QUERY,
            "For a given specialresource and state, 1 if the state is completed, 0 if it is not.",
            ["specialresource", "state"],
        )
        self._completed_kinds = GaugeVec(
            COMPLETED_KIND_QUERY,
            "For a given specialresource,kind,name and namespace, 1 if the state is "
            "completed, 0 if it is not.",
            ["specialresource", "kind", "name", "namespace"],
        )
        self._used_nodes = GaugeVec(
            USED_NODES_QUERY,
            "Nodes that the deployments/daemonsets' pods are running on",
            ["cr", "kind", "name", "namespace", "nodes"],
        )
        self._upgrade_alert = GaugeVec(
            UPGRADE_ALERT_QUERY,
            "For a SRO CR, 1 if during upgrade there is a problem with CR, 0 otherwise",
            ["cr"],
        )
        self.registry.register(
            self._completed_states,
            self._created_special_resources,
            self._completed_kinds,
            self._used_nodes,
            self._upgrade_alert,
        )

    def set_special_resources_created(self, value: int) -> None:
        """Record the number of created special resources."""
        self._created_special_resources.set(value)

    def set_completed_state(self, special_resource: str, state: str, value: int) -> None:
        """Record whether a state of a special resource is completed."""
        self._completed_states.labels(special_resource, state).set(value)

    def set_completed_kind(
        self, special_resource: str, kind: str, name: str, namespace: str, value: int
    ) -> None:
        """Record whether an object of a special resource is completed."""
        self._completed_kinds.labels(special_resource, kind, name, namespace).set(value)

    def set_used_nodes(
        self, cr_name: str, kind: str, name: str, namespace: str, nodes: str
    ) -> None:
        """Record the nodes an object's pods run on."""
        self._used_nodes.labels(cr_name, kind, name, namespace, nodes).set(1)

    def set_upgrade_alert(self, cr_name: str, value: int) -> None:
        """Record whether a custom resource has a problem during upgrade."""
        self._upgrade_alert.labels(cr_name).set(value)