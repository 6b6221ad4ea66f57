"""Get-or-create sequencing of resource descriptors."""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List

from .exceptions import ConfigurationError, DependencyUnavailableError
from .resources import Ref, ResourceDescriptor, ResourceHandle, ResourceState


class ProvisioningContext:
    """Handles resolved so far in one run, keyed by descriptor name."""

    def __init__(self):
        self._handles: "OrderedDict[str, ResourceHandle]" = OrderedDict()

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    def __getitem__(self, name: str) -> ResourceHandle:
        return self._handles[name]

    def __iter__(self):
        return iter(self._handles.items())

    def __len__(self) -> int:
        return len(self._handles)

    def record(self, name: str, handle: ResourceHandle):
        self._handles[name] = handle

    def resolve(self, descriptor: ResourceDescriptor, ref: Ref) -> Any:
        if ref.name not in self._handles:
            raise DependencyUnavailableError(
                descriptor.kind.value, descriptor.key, f"prerequisite {ref.name!r} has not been provisioned"
            )
        handle = self._handles[ref.name]
        if ref.attribute is None:
            return handle.identifier
        if ref.attribute not in handle.attributes:
            raise DependencyUnavailableError(
                descriptor.kind.value, descriptor.key, f"prerequisite {ref.name!r} has no attribute {ref.attribute!r}"
            )
        return handle.attributes[ref.attribute]


class Sequencer:
    """Ensures descriptors one after another, threading handles forward.

    The provider must offer ``describe(kind, key, params)`` returning None
    when the resource is absent, and ``create(kind, key, params)``. Both
    return ``{"identifier": ..., "attributes": {...}}``.
    """

    def __init__(self, provider, echo=print):
        self.provider = provider
        self.echo = echo

    def ensure(self, descriptor: ResourceDescriptor, context: ProvisioningContext) -> ResourceHandle:
        params = self._resolve_params(descriptor, context)

        self.echo(f"==> Ensuring {descriptor.kind} {descriptor.key}")
        found = self.provider.describe(descriptor.kind, descriptor.key, params)
        if found is not None:
            self.echo(f"    {descriptor.kind} {descriptor.key} already exists")
            handle = self._handle(descriptor, found, ResourceState.EXISTS)
        else:
            created = self.provider.create(descriptor.kind, descriptor.key, params)
            self.echo(f"    {descriptor.kind} {descriptor.key} created")
            handle = self._handle(descriptor, created, ResourceState.CREATED)

        context.record(descriptor.name, handle)
        return handle

    def run(self, descriptors: Iterable[ResourceDescriptor]) -> ProvisioningContext:
        """Ensure every descriptor in order. The first failure aborts the run."""
        plan = list(descriptors)
        validate_plan(plan)

        context = ProvisioningContext()
        for descriptor in plan:
            self.ensure(descriptor, context)
        return context

    def _resolve_params(self, descriptor: ResourceDescriptor, context: ProvisioningContext) -> Dict[str, Any]:
        params = dict(descriptor.params)
        for param, ref in descriptor.depends_on.items():
            params[param] = context.resolve(descriptor, ref)
        return params

    def _handle(self, descriptor: ResourceDescriptor, result: dict, state: ResourceState) -> ResourceHandle:
        return ResourceHandle(
            kind=descriptor.kind,
            key=descriptor.key,
            identifier=result["identifier"],
            attributes=dict(result.get("attributes", {})),
            state=state,
        )


def validate_plan(plan: List[ResourceDescriptor]):
    """Reject plans that could only fail halfway through a run."""
    seen = set()
    for descriptor in plan:
        if not descriptor.name:
            raise ConfigurationError(f"{descriptor.kind} descriptor has no name")
        if not descriptor.key:
            raise ConfigurationError(f"{descriptor.kind} {descriptor.name!r} has an empty key")
        if descriptor.name in seen:
            raise ConfigurationError(f"duplicate descriptor name {descriptor.name!r}")
        for param, ref in descriptor.depends_on.items():
            if ref.name not in seen:
                raise ConfigurationError(
                    f"{descriptor.kind} {descriptor.name!r} parameter {param!r} depends on "
                    f"{ref.name!r}, which is not declared before it"
                )
        seen.add(descriptor.name)


def format_manifest(context: ProvisioningContext) -> str:
    lines = ["Resources:"]
    for name, handle in context:
        marker = "created" if handle.created else "existing"
        lines.append(f"- {handle.kind} {name}: {handle.identifier} ({marker})")
    return "\n".join(lines)
