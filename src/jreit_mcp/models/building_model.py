"""J-REIT 建物データモデル。

データセット (buildings.json) の camelCase キーをエイリアスとして受け付け、
Python 側では snake_case 属性で参照する。入力はすべて読み取り専用。
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _to_numeric_string(value: Any) -> Any:
    """数値で渡された値を文字列へ寄せる (データセットは数値文字列が正)。"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


NumericString = Annotated[str, BeforeValidator(_to_numeric_string)]


class _DatasetModel(BaseModel):
    """データセット共通設定"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AssetType(str, Enum):
    """アセット種別列挙 (定義順 = 代表種別の判定優先順)"""

    OFFICE = "office"
    RETAIL = "retail"
    HOTEL = "hotel"
    RESIDENTIAL = "residential"
    LOGISTIC = "logistic"
    PARKING = "parking"
    INDUSTRIAL = "industrial"
    HEALTHCARE = "healthCare"
    OTHER = "other"

    @property
    def label(self) -> str:
        """日本語ラベル"""
        return ASSET_TYPE_LABELS[self]

    @property
    def flag_name(self) -> str:
        """AssetTypeFlags 上の属性名"""
        return ASSET_TYPE_FLAGS[self]


ASSET_TYPE_LABELS: Dict[AssetType, str] = {
    AssetType.OFFICE: "オフィス",
    AssetType.RETAIL: "商業施設",
    AssetType.HOTEL: "ホテル",
    AssetType.RESIDENTIAL: "住宅",
    AssetType.LOGISTIC: "物流施設",
    AssetType.PARKING: "駐車場",
    AssetType.INDUSTRIAL: "工業施設",
    AssetType.HEALTHCARE: "ヘルスケア",
    AssetType.OTHER: "その他",
}

ASSET_TYPE_FLAGS: Dict[AssetType, str] = {
    AssetType.OFFICE: "is_office",
    AssetType.RETAIL: "is_retail",
    AssetType.HOTEL: "is_hotel",
    AssetType.RESIDENTIAL: "is_residential",
    AssetType.LOGISTIC: "is_logistic",
    AssetType.PARKING: "is_parking",
    AssetType.INDUSTRIAL: "is_industrial",
    AssetType.HEALTHCARE: "is_health_care",
    AssetType.OTHER: "is_other",
}


class AssetTypeFlags(_DatasetModel):
    """アセット種別フラグ (複数 True になり得る)"""

    is_office: bool = Field(default=False, alias="isOffice")
    is_retail: bool = Field(default=False, alias="isRetail")
    is_hotel: bool = Field(default=False, alias="isHotel")
    is_parking: bool = Field(default=False, alias="isParking")
    is_industrial: bool = Field(default=False, alias="isIndustrial")
    is_logistic: bool = Field(default=False, alias="isLogistic")
    is_residential: bool = Field(default=False, alias="isResidential")
    is_health_care: bool = Field(default=False, alias="isHealthCare")
    is_other: bool = Field(default=False, alias="isOther")

    def has(self, asset_type: AssetType) -> bool:
        """指定種別のフラグが立っているか"""
        return bool(getattr(self, asset_type.flag_name))

    @property
    def primary(self) -> AssetType:
        """優先順で最初に True の種別。全て False なら OTHER。"""
        for asset_type in AssetType:
            if self.has(asset_type):
                return asset_type
        return AssetType.OTHER


class BuildingSpec(_DatasetModel):
    """建物仕様"""

    name: str = Field(..., description="建物名")
    address: str = Field(default="", description="住所")
    latitude: Optional[NumericString] = Field(default=None, description="緯度")
    longitude: Optional[NumericString] = Field(default=None, description="経度")
    completed_year: Optional[int] = Field(
        default=None, alias="completedYear", description="竣工年"
    )
    completed_month: Optional[int] = Field(
        default=None, alias="completedMonth", description="竣工月"
    )
    gross_floor_area: Optional[NumericString] = Field(
        default=None, alias="grossFloorArea", description="延床面積"
    )
    net_leasable_area_total: Optional[NumericString] = Field(
        default=None, alias="netLeasableAreaTotal", description="貸付可能面積"
    )


class YieldEvaluation(_DatasetModel):
    """最新鑑定評価"""

    appraised_price: Optional[int] = Field(
        default=None, alias="appraisedPrice", description="最新鑑定評価額（円）"
    )
    cap_rate: Optional[NumericString] = Field(
        default=None, alias="capRate", description="最新CR（%）"
    )


class Acquisition(_DatasetModel):
    """取得情報"""

    acquisition_price: Optional[int] = Field(
        default=None, alias="acquisitionPrice", description="取得時取引価格"
    )
    acquisition_date: Optional[str] = Field(
        default=None, alias="acquisitionDate", description="初回取得日"
    )
    initial_cap_rate: Optional[NumericString] = Field(
        default=None, alias="initialCapRate", description="取得時CR"
    )


class Transfer(_DatasetModel):
    """譲渡情報"""

    transfer_date: Optional[str] = Field(default=None, alias="transferDate")


class CapRateHistory(_DatasetModel):
    """キャップレート履歴"""

    id: Optional[str] = None
    j_reit_building_id: Optional[str] = Field(default=None, alias="jReitBuildingId")
    cap_rate: NumericString = Field(..., alias="capRate")
    closing_date: str = Field(..., alias="closingDate")


class Leasing(_DatasetModel):
    """賃貸状況"""

    occupancy_rate: NumericString = Field(
        ..., alias="occupancyRate", description="稼働率（%）"
    )


class Financial(_DatasetModel):
    """決算期ごとの財務スナップショット"""

    leasing: Leasing
    closing_date: Optional[str] = Field(default=None, alias="closingDate")


class Building(_DatasetModel):
    """J-REIT 保有建物"""

    id: str = Field(..., description="建物ID")
    building_spec: BuildingSpec = Field(..., alias="buildingSpec")
    yield_evaluation: YieldEvaluation = Field(
        default_factory=YieldEvaluation, alias="yieldEvaluation"
    )
    asset_type: AssetTypeFlags = Field(
        default_factory=AssetTypeFlags, alias="assetType"
    )
    acquisition: Optional[Acquisition] = None
    transfer: Optional[Transfer] = None
    cap_rate_histories: List[CapRateHistory] = Field(
        default_factory=list, alias="capRateHistories"
    )
    financials: List[Financial] = Field(default_factory=list)

    @property
    def name(self) -> str:
        """建物名"""
        return self.building_spec.name

    @property
    def address(self) -> str:
        """住所"""
        return self.building_spec.address

    @property
    def cap_rate(self) -> Optional[str]:
        """最新CR (未加工の文字列)"""
        return self.yield_evaluation.cap_rate

    @property
    def appraised_price(self) -> Optional[int]:
        """最新鑑定評価額（円）"""
        return self.yield_evaluation.appraised_price

    @property
    def latest_occupancy_rate(self) -> Optional[str]:
        """先頭スナップショットの稼働率。スナップショットが無ければ None。"""
        if not self.financials:
            return None
        return self.financials[0].leasing.occupancy_rate

    @property
    def primary_asset_type(self) -> AssetType:
        """代表アセット種別"""
        return self.asset_type.primary

    def to_json_dict(self) -> Dict[str, Any]:
        """データセットと同じ camelCase 形式で辞書化"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class BuildingSummary(BaseModel):
    """一覧表示用の建物サマリー"""

    id: str
    name: str
    type: str = Field(..., description="代表アセット種別ラベル")
    acquisition_date: Optional[str] = Field(default=None, alias="acquisitionDate")
    cap_rate: Optional[float] = Field(
        default=None, alias="capRate", description="最新CR（%）"
    )
    evaluation_amount: float = Field(
        ..., alias="evaluationAmount", description="鑑定評価額（億円）"
    )
    occupancy_rate: float = Field(..., alias="occupancyRate", description="稼働率（%）")

    model_config = ConfigDict(populate_by_name=True)
