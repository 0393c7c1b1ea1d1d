from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Tuple

from timechart.config import CHART_HEIGHT, CHART_WIDTH, DEFAULT_CID, SENTINEL
from timechart.errors import DataShapeError


class Observation(BaseModel):
    week: int
    data: float

    @property
    def local_week(self) -> int:
        return self.week % 100

    @property
    def is_sentinel(self) -> bool:
        return self.data == SENTINEL


class Revision(BaseModel):
    lag: int = Field(..., ge=0)
    value: float


class ObservedRevision(BaseModel):
    week: int
    data: List[Revision]

    def at_lag(self, lag: int) -> Optional[float]:
        for rev in self.data:
            if rev.lag == lag:
                return rev.value
        return None


class Interval(BaseModel):
    point: float
    low: List[float]
    high: List[float]

    def bounds(self, cid: int) -> Tuple[float, float]:
        try:
            return self.low[cid], self.high[cid]
        except IndexError:
            raise DataShapeError(
                f"Interval has no bounds for confidence selector {cid}"
            ) from None


# json name -> attribute name
TARGET_ATTRS: Dict[str, str] = {
    "onsetWeek": "onset_week",
    "peakWeek": "peak_week",
    "peakPercent": "peak_percent",
    "oneWk": "one_wk",
    "twoWk": "two_wk",
    "threeWk": "three_wk",
    "fourWk": "four_wk",
}


class PredictionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    week: int
    onset_week: Interval = Field(..., alias="onsetWeek")
    peak_week: Interval = Field(..., alias="peakWeek")
    peak_percent: Interval = Field(..., alias="peakPercent")
    one_wk: Interval = Field(..., alias="oneWk")
    two_wk: Interval = Field(..., alias="twoWk")
    three_wk: Interval = Field(..., alias="threeWk")
    four_wk: Interval = Field(..., alias="fourWk")

    @property
    def local_week(self) -> int:
        return self.week % 100

    def target(self, name: str) -> Interval:
        return getattr(self, TARGET_ATTRS[name])


class HistorySeason(BaseModel):
    id: str
    actual: List[Observation]


class ModelMeta(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None


class ModelForecasts(BaseModel):
    id: str
    predictions: List[PredictionRecord]
    meta: ModelMeta = Field(default_factory=ModelMeta)


class Dataset(BaseModel):
    actual: List[Observation] = Field(..., min_length=1)
    history: List[HistorySeason]
    baseline: Optional[float]
    models: List[ModelForecasts]
    observed: Optional[List[ObservedRevision]] = None


class RenderRequest(BaseModel):
    dataset: Dataset
    week_idx: Optional[int] = None
    cid: int = Field(DEFAULT_CID, ge=0)
    hidden: List[str] = []
    history_shown: bool = True
    width: int = Field(CHART_WIDTH, gt=0)
    height: int = Field(CHART_HEIGHT, gt=0)


class TooltipRequest(RenderRequest):
    idx: Optional[int] = None
    pixel_x: Optional[float] = None
