"""Representation of the Kubernetes objects exposed as metrics.

Objects are parsed from the JSON documents returned by the API server list and
watch calls. Only the fields used by the metric families are kept, so each
object is small and cheap to hold while its metrics are rendered.
"""

import base64
import binascii
from dataclasses import dataclass, field
from collections.abc import Callable
import datetime
import functools
from typing import Any, ClassVar, TypeVar

from mashumaro import DataClassDictMixin
from mashumaro.config import BaseConfig

from .exceptions import InputException

__all__ = [
    "ObjectIdentity",
    "ObjectMeta",
    "BaseObject",
    "Pod",
    "Service",
    "DaemonSet",
    "Deployment",
    "PodDisruptionBudget",
    "CertificateSigningRequest",
    "Namespace",
    "ConfigMap",
]

T = TypeVar("T")


def _decode_errors(
    func: Callable[[Any, dict[str, Any]], T],
) -> Callable[[Any, dict[str, Any]], T]:
    """Report a document of unexpected shape as an `InputException`."""

    @functools.wraps(func)
    def parse(cls: Any, doc: dict[str, Any]) -> T:
        try:
            return func(cls, doc)
        except (AttributeError, KeyError, TypeError, ValueError) as err:
            raise InputException(
                f"Invalid {cls.__name__} object: {err.__class__.__name__}: {err}"
            ) from err

    return parse


def parse_timestamp(value: str | None) -> float | None:
    """Return a Kubernetes RFC 3339 timestamp as unix seconds."""
    if not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as err:
        raise InputException(f"Invalid timestamp '{value}': {err}") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed.timestamp()


def _int(value: Any) -> int:
    """Return an integer field, treating a missing value as zero."""
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise InputException(f"Invalid integer value '{value}'") from err


@dataclass(frozen=True, order=True)
class ObjectIdentity:
    """Identifier of an object within one resource kind."""

    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        return self.namespaced_name


@dataclass
class OwnerReference(DataClassDictMixin):
    """A reference to the owner of an object."""

    kind: str
    name: str
    controller: bool = False


@dataclass
class ObjectMeta(DataClassDictMixin):
    """Metadata common to all objects."""

    name: str
    """The name of the object."""

    namespace: str | None = None
    """The namespace of the object, None for cluster scoped objects."""

    uid: str = ""

    resource_version: str = ""
    """Resource version of the object when it was observed."""

    generation: int = 0

    creation_timestamp: float | None = None
    """Creation time in unix seconds."""

    deletion_timestamp: float | None = None
    """Deletion time in unix seconds, set once the object is terminating."""

    labels: dict[str, str] = field(default_factory=dict)

    annotations: dict[str, str] = field(default_factory=dict)

    owner_references: list[OwnerReference] = field(default_factory=list)

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "ObjectMeta":
        """Parse ObjectMeta from a raw kubernetes object."""
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid object missing metadata: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid object missing metadata.name: {doc}")
        return cls(
            name=name,
            namespace=metadata.get("namespace"),
            uid=metadata.get("uid", ""),
            resource_version=metadata.get("resourceVersion", ""),
            generation=_int(metadata.get("generation")),
            creation_timestamp=parse_timestamp(metadata.get("creationTimestamp")),
            deletion_timestamp=parse_timestamp(metadata.get("deletionTimestamp")),
            labels=dict(metadata.get("labels") or {}),
            annotations=dict(metadata.get("annotations") or {}),
            owner_references=[
                OwnerReference(
                    kind=ref.get("kind", ""),
                    name=ref.get("name", ""),
                    controller=bool(ref.get("controller")),
                )
                for ref in metadata.get("ownerReferences") or ()
            ],
        )


@dataclass
class BaseObject(DataClassDictMixin):
    """Base class for all objects exposed as metrics."""

    kind: ClassVar[str]
    """The kind of the object."""

    metadata: ObjectMeta

    @property
    def identity(self) -> ObjectIdentity:
        """Identity of the object within its kind."""
        return ObjectIdentity(self.metadata.namespace, self.metadata.name)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def resource_version(self) -> str:
        return self.metadata.resource_version

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "BaseObject":
        """Parse the object from a raw kubernetes object."""
        raise NotImplementedError

    class Config(BaseConfig):
        omit_none = True


@dataclass
class Condition(DataClassDictMixin):
    """A condition reported in the status of an object."""

    type: str
    status: str = "Unknown"
    reason: str | None = None

    @classmethod
    def parse_list(cls, values: list[dict[str, Any]] | None) -> list["Condition"]:
        """Parse the conditions of an object status."""
        return [
            cls(
                type=value.get("type", ""),
                status=value.get("status", "Unknown"),
                reason=value.get("reason"),
            )
            for value in values or ()
        ]


@dataclass
class ContainerStatus(DataClassDictMixin):
    """Status of one container of a pod."""

    name: str
    image: str = ""
    image_id: str = ""
    container_id: str = ""
    ready: bool = False
    restart_count: int = 0
    state: str = "waiting"
    """One of waiting, running or terminated."""

    reason: str | None = None
    """The reason of the waiting or terminated state."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ContainerStatus":
        """Parse a container status from a pod status."""
        state_doc = doc.get("state") or {}
        state = "waiting"
        reason = None
        for candidate in ("running", "terminated", "waiting"):
            if candidate in state_doc:
                state = candidate
                reason = (state_doc[candidate] or {}).get("reason")
                break
        return cls(
            name=doc.get("name", ""),
            image=doc.get("image", ""),
            image_id=doc.get("imageID", ""),
            container_id=doc.get("containerID", ""),
            ready=bool(doc.get("ready")),
            restart_count=_int(doc.get("restartCount")),
            state=state,
            reason=reason,
        )


@dataclass
class Pod(BaseObject):
    """A representation of a kubernetes Pod."""

    kind: ClassVar[str] = "Pod"

    node_name: str = ""
    host_ip: str = ""
    pod_ip: str = ""
    phase: str = ""
    start_time: float | None = None
    priority_class: str = ""
    conditions: list[Condition] = field(default_factory=list)
    container_statuses: list[ContainerStatus] = field(default_factory=list)
    init_container_statuses: list[ContainerStatus] = field(default_factory=list)

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "Pod":
        """Parse a Pod from a raw kubernetes object."""
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            node_name=spec.get("nodeName", ""),
            host_ip=status.get("hostIP", ""),
            pod_ip=status.get("podIP", ""),
            phase=status.get("phase", ""),
            start_time=parse_timestamp(status.get("startTime")),
            priority_class=spec.get("priorityClassName", ""),
            conditions=Condition.parse_list(status.get("conditions")),
            container_statuses=[
                ContainerStatus.parse_doc(value)
                for value in status.get("containerStatuses") or ()
            ],
            init_container_statuses=[
                ContainerStatus.parse_doc(value)
                for value in status.get("initContainerStatuses") or ()
            ],
        )

    @property
    def created_by(self) -> OwnerReference | None:
        """The controller owning the pod, if any."""
        for ref in self.metadata.owner_references:
            if ref.controller:
                return ref
        return None


@dataclass
class Service(BaseObject):
    """A representation of a kubernetes Service."""

    kind: ClassVar[str] = "Service"

    type: str = "ClusterIP"
    cluster_ip: str = ""
    external_name: str = ""
    load_balancer_ip: str = ""
    external_ips: list[str] = field(default_factory=list)
    load_balancer_ingress: list[tuple[str, str]] = field(default_factory=list)
    """Pairs of (ip, hostname) of the load balancer ingress points."""

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "Service":
        """Parse a Service from a raw kubernetes object."""
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        ingress = (status.get("loadBalancer") or {}).get("ingress") or ()
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            type=spec.get("type", "ClusterIP"),
            cluster_ip=spec.get("clusterIP", ""),
            external_name=spec.get("externalName", ""),
            load_balancer_ip=spec.get("loadBalancerIP", ""),
            external_ips=list(spec.get("externalIPs") or ()),
            load_balancer_ingress=[
                (value.get("ip", ""), value.get("hostname", "")) for value in ingress
            ],
        )


@dataclass
class DaemonSet(BaseObject):
    """A representation of a kubernetes DaemonSet."""

    kind: ClassVar[str] = "DaemonSet"

    current_number_scheduled: int = 0
    desired_number_scheduled: int = 0
    number_available: int = 0
    number_misscheduled: int = 0
    number_ready: int = 0
    number_unavailable: int = 0
    updated_number_scheduled: int = 0
    observed_generation: int = 0

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "DaemonSet":
        """Parse a DaemonSet from a raw kubernetes object."""
        status = doc.get("status") or {}
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            current_number_scheduled=_int(status.get("currentNumberScheduled")),
            desired_number_scheduled=_int(status.get("desiredNumberScheduled")),
            number_available=_int(status.get("numberAvailable")),
            number_misscheduled=_int(status.get("numberMisscheduled")),
            number_ready=_int(status.get("numberReady")),
            number_unavailable=_int(status.get("numberUnavailable")),
            updated_number_scheduled=_int(status.get("updatedNumberScheduled")),
            observed_generation=_int(status.get("observedGeneration")),
        )


@dataclass
class Deployment(BaseObject):
    """A representation of a kubernetes Deployment."""

    kind: ClassVar[str] = "Deployment"

    spec_replicas: int | None = None
    """Desired replicas, None when the spec leaves it to the default."""

    paused: bool = False
    replicas: int = 0
    ready_replicas: int = 0
    available_replicas: int = 0
    unavailable_replicas: int = 0
    updated_replicas: int = 0
    observed_generation: int = 0
    conditions: list[Condition] = field(default_factory=list)

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "Deployment":
        """Parse a Deployment from a raw kubernetes object."""
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        spec_replicas = spec.get("replicas")
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            spec_replicas=_int(spec_replicas) if spec_replicas is not None else None,
            paused=bool(spec.get("paused")),
            replicas=_int(status.get("replicas")),
            ready_replicas=_int(status.get("readyReplicas")),
            available_replicas=_int(status.get("availableReplicas")),
            unavailable_replicas=_int(status.get("unavailableReplicas")),
            updated_replicas=_int(status.get("updatedReplicas")),
            observed_generation=_int(status.get("observedGeneration")),
            conditions=Condition.parse_list(status.get("conditions")),
        )


@dataclass
class PodDisruptionBudget(BaseObject):
    """A representation of a kubernetes PodDisruptionBudget."""

    kind: ClassVar[str] = "PodDisruptionBudget"

    current_healthy: int = 0
    desired_healthy: int = 0
    disruptions_allowed: int = 0
    expected_pods: int = 0
    observed_generation: int = 0

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "PodDisruptionBudget":
        """Parse a PodDisruptionBudget from a raw kubernetes object."""
        status = doc.get("status") or {}
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            current_healthy=_int(status.get("currentHealthy")),
            desired_healthy=_int(status.get("desiredHealthy")),
            disruptions_allowed=_int(status.get("disruptionsAllowed")),
            expected_pods=_int(status.get("expectedPods")),
            observed_generation=_int(status.get("observedGeneration")),
        )


@dataclass
class CertificateSigningRequest(BaseObject):
    """A representation of a kubernetes CertificateSigningRequest."""

    kind: ClassVar[str] = "CertificateSigningRequest"

    signer_name: str = ""
    conditions: list[Condition] = field(default_factory=list)
    certificate_length: int = 0
    """Length in bytes of the issued certificate, zero when not issued."""

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "CertificateSigningRequest":
        """Parse a CertificateSigningRequest from a raw kubernetes object."""
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        certificate_length = 0
        if certificate := status.get("certificate"):
            try:
                certificate_length = len(base64.b64decode(certificate))
            except (binascii.Error, ValueError) as err:
                raise InputException(
                    f"Invalid certificate in CertificateSigningRequest: {err}"
                ) from err
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            signer_name=spec.get("signerName", ""),
            conditions=Condition.parse_list(status.get("conditions")),
            certificate_length=certificate_length,
        )


@dataclass
class Namespace(BaseObject):
    """A representation of a kubernetes Namespace."""

    kind: ClassVar[str] = "Namespace"

    phase: str = ""
    conditions: list[Condition] = field(default_factory=list)

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "Namespace":
        """Parse a Namespace from a raw kubernetes object."""
        status = doc.get("status") or {}
        return cls(
            metadata=ObjectMeta.parse_doc(doc),
            phase=status.get("phase", ""),
            conditions=Condition.parse_list(status.get("conditions")),
        )


@dataclass
class ConfigMap(BaseObject):
    """A representation of a kubernetes ConfigMap."""

    kind: ClassVar[str] = "ConfigMap"

    @classmethod
    @_decode_errors
    def parse_doc(cls, doc: dict[str, Any]) -> "ConfigMap":
        """Parse a ConfigMap from a raw kubernetes object."""
        return cls(metadata=ObjectMeta.parse_doc(doc))
