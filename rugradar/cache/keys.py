import hashlib

from rugradar.models.report import ReportKind
from rugradar.version import ENGINE_VERSION


def report_key(
    prefix: str,
    kind: ReportKind,
    address: str,
    engine_version: str = ENGINE_VERSION,
) -> str:
    """Deterministic cache key for a validated address.

    The digest covers the engine version, so a rules change never serves
    reports computed by an older engine.
    """
    digest = hashlib.sha256(f"{kind}|{address}|{engine_version}".encode()).hexdigest()[:32]
    return f"{prefix}:{kind}:{digest}"
