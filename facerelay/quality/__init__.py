"""Detection quality filtering."""

from facerelay.quality.gate import QualityGate

__all__ = ["QualityGate"]
