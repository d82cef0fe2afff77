from settlement.economy.tips.service import (
    TIP_MAX_AMOUNT,
    TIP_MIN_AMOUNT,
    TIP_PLATFORM_FEE_RATE,
    TipResult,
    TipService,
)

__all__ = [
    "TIP_MAX_AMOUNT",
    "TIP_MIN_AMOUNT",
    "TIP_PLATFORM_FEE_RATE",
    "TipResult",
    "TipService",
]
