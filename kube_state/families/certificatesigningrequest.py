"""Metric families of CertificateSigningRequest objects."""

from collections.abc import Sequence
import functools

from kube_state.metric import FamilyGenerator, Metric, MetricType
from kube_state.objects import CertificateSigningRequest

from .utils import Wrapper, created_family, labels_families, wrap_func

DEFAULT_LABELS = ("certificatesigningrequest",)

_wrap: Wrapper = functools.partial(
    wrap_func,
    CertificateSigningRequest,
    DEFAULT_LABELS,
    lambda csr: (csr.name,),
)


def _conditions(csr: CertificateSigningRequest) -> list[Metric]:
    types = [condition.type.lower() for condition in csr.conditions]
    return [
        Metric(
            label_keys=["condition"],
            label_values=[condition],
            value=types.count(condition),
        )
        for condition in ("approved", "denied")
    ]


def _signer(csr: CertificateSigningRequest) -> list[Metric]:
    return [Metric(label_keys=["signer_name"], label_values=[csr.signer_name], value=1)]


def certificate_signing_request_metric_families(
    allow_annotations: Sequence[str] | None = None,
    allow_labels: Sequence[str] | None = None,
) -> list[FamilyGenerator]:
    """Return the metric families exposed for CertificateSigningRequests."""
    prefix = "kube_certificatesigningrequest"
    return [
        created_family(prefix, _wrap),
        FamilyGenerator(
            f"{prefix}_condition",
            "The number of each certificatesigningrequest condition",
            MetricType.GAUGE,
            _wrap(_conditions),
        ),
        FamilyGenerator(
            f"{prefix}_cert_length",
            "Length of the issued cert",
            MetricType.GAUGE,
            _wrap(lambda csr: [Metric(value=csr.certificate_length)]),
        ),
        FamilyGenerator(
            f"{prefix}_signer",
            "The signer name of the certificatesigningrequest",
            MetricType.INFO,
            _wrap(_signer),
        ),
        *labels_families(prefix, _wrap, allow_labels, allow_annotations),
    ]
