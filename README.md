# sroperator

Building blocks for an operator that deploys special resources, such as
out-of-tree kernel drivers, onto a cluster. Objects are handled in their
unstructured form: plain nested dictionaries with `kind`, `apiVersion`,
`metadata`, `spec` and `status`, the same shape a cluster's API returns.

The package has no third-party dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `sroperator.unstructured` reads and writes fields of unstructured objects.
  `nested_field`, `nested_string`, `nested_int`, `nested_map` and
  `nested_slice` return a `(value, found)` pair and raise `FieldTypeError`
  when a value has the wrong type; `nested_map` and `nested_slice` return
  copies. `set_nested_field` creates missing parent mappings. `name_of`,
  `namespace_of`, `kind_of`, `labels_of`, `annotations_of` and
  `owner_references_of` read metadata, falling back to empty values.
- `sroperator.assets` finds state manifests. `valid_state_name` accepts file
  names such as `0000-foo.yaml` or `0001_bar.yaml`; `named_template` accepts
  names starting with `_`. `get_from(directory)` returns a `Metadata(name,
  content)` for each valid state file directly inside the directory, in name
  order, and raises `FileNotFoundError` if the directory does not exist.
- `sroperator.helmer_types` holds the `HelmRepo` and `HelmChart` dataclasses,
  with `from_dict` / `to_dict` for their serialised form (keys such as
  `certFile`, `caFile`, `insecure_skip_tls_verify`) and `HelmChart.copy`.
- `sroperator.clients` defines the `KubeClient` protocol (`get`, `list`,
  `create`, `update`, `delete`, `invalidate`, `server_groups`,
  `get_pod_logs`), `ObjectKey(namespace, name)`, the errors `ApiError`,
  `NotFoundError`, `AlreadyExistsError`, `ForbiddenError` and
  `UnauthorizedError`, and `InMemoryClient`, which keeps objects and pod logs
  in memory. `get_nodes_by_labels` lists the nodes carrying all given labels
  and leaves out those tainted `NoSchedule` or `NoExecute`.
- `sroperator.cluster.Cluster` reads cluster-wide information:
  `version()` returns the first completed version and its `major.minor`
  form, `os_image_url()` reads the machine config operator's ConfigMap, and
  `get_dtk_images()` returns the driver-toolkit image references tagged
  `latest`, newest first. Failures raise `ClusterError`.
- `sroperator.lifecycle.Lifecycle` lists the pods selected by a DaemonSet
  (`pods_from_daemonset`) or Deployment (`pods_from_deployment`); it returns
  an empty list and logs a warning when the owner cannot be read.
- `sroperator.kernel` makes objects kernel affine. `set_affine_attributes`
  appends a hash of the OS and kernel version to the object's name, updates
  the `app` labels and selectors of DaemonSets, Deployments and
  StatefulSets (and `spec.buildRef.name` of BuildRuns), and calls
  `set_version_node_affinity`, which adds the kernel version to the node
  selector. `is_object_affine`, `full_version(nodes)` and
  `patch_version` (`"4.18.0-305.19.1.el8_4.x86_64"` gives `"4.18.0-305"`)
  complete it; errors raise `KernelError`.
- `sroperator.metrics` provides `Gauge`, `GaugeVec` and a `Registry` whose
  `gather()` returns metric families sorted by name. `Metrics` registers the
  operator's gauges (`sro_managed_resources_total`,
  `sro_states_completed_info`, `sro_kind_completed_info`, `sro_used_nodes`,
  `sro_upgrade_alert`) and sets them through `set_special_resources_created`,
  `set_completed_state`, `set_completed_kind`, `set_used_nodes` and
  `set_upgrade_alert`.
- `sroperator.event_filter.EventFilter` decides whether a `create`, `update`,
  `delete` or `generic` event should be handled, recording the last event in
  `mode` (a `Mode`). It recognises special resources, objects they own
  (by owner reference or by the owned label) and unmanaged special
  resources.
- `sroperator.readiness` holds the pure readiness checks:
  `status_matches`, `statefulset_ready`, `job_complete`, `daemonset_ready`,
  `replicasets_ready` and `log_tail_matches` (which searches the last 100
  bytes of a log). They raise `ReadinessError` when an object cannot be
  checked.
- `sroperator.poll.Poller` checks objects against a client.
  `for_resource` dispatches on the kind (Pod, DaemonSet, BuildConfig, Secret,
  CustomResourceDefinition, Job, Deployment, StatefulSet, Namespace,
  Certificates); other kinds pass with a logged warning.
  `for_resource_unavailability`, `for_daemonset` and `for_daemonset_logs`
  complete it. The optional `namespace` limits where builds and DaemonSet
  pods are listed.

## Example

```python
from sroperator.clients import InMemoryClient, get_nodes_by_labels
from sroperator.kernel import full_version, set_affine_attributes
from sroperator.poll import PollError, Poller

node = {
    "kind": "Node",
    "metadata": {"name": "worker-0", "labels": {"node-role.kubernetes.io/worker": ""}},
    "status": {"nodeInfo": {"kernelVersion": "4.18.0-305.19.1.el8_4.x86_64"}},
}
client = InMemoryClient(objects=[node])
nodes = get_nodes_by_labels(client, {"node-role.kubernetes.io/worker": ""})
kernel = full_version(nodes)

daemonset = {"kind": "DaemonSet", "metadata": {"name": "driver", "namespace": "drivers"}}
set_affine_attributes(daemonset, kernel, "8.4")

try:
    Poller(client).for_resource(daemonset)
except PollError as err:
    print("not ready:", err)
```

Each check of `Poller` raises `PollError` while a resource is not ready and
returns quietly once it is, so it can sit inside any retry loop.

## What it does not do

- It does not talk to a real cluster: the only client provided is
  `InMemoryClient`. Anything implementing the `KubeClient` protocol can be
  passed in instead.
- It has no reconcile loop, no command line and no metrics HTTP endpoint;
  the metrics are only gathered in memory.
- It does not download, render or install Helm charts; `HelmRepo` and
  `HelmChart` only describe them.
- `Poller` does not wait or retry by itself; it checks once per call.