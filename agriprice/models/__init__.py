from agriprice.models.base import Base
from agriprice.models.catalog import GlobalProduct, SourceProduct, SourceSeries
from agriprice.models.prices import RawPrice
from agriprice.models.reference import Currency, Unit
from agriprice.models.runs import JobRun
from agriprice.models.signals import PriceSignal

__all__ = [
    "Base",
    "Currency",
    "Unit",
    "GlobalProduct",
    "SourceProduct",
    "SourceSeries",
    "RawPrice",
    "PriceSignal",
    "JobRun",
]
