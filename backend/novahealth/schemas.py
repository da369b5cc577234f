from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _bcrypt_limit(v: str) -> str:
    # bcrypt ограничивает пароль 72 байтами (после utf-8 кодирования).
    if len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be <= 72 bytes (bcrypt limit)")
    return v


class LabTestType(str, Enum):
    BLOOD = "blood"
    DNA = "dna"
    RNA = "rna"
    HORMONE = "hormone"
    MICROBIOME = "microbiome"
    OTHER = "other"


class LabTestStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class SupplementCategory(str, Enum):
    VITAMIN = "vitamin"
    MINERAL = "mineral"
    AMINO_ACID = "amino_acid"
    ENZYME = "enzyme"
    HERB = "herb"
    PROBIOTIC = "probiotic"
    OMEGA = "omega"
    OTHER = "other"


# --- users / auth ---


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def bcrypt_limit(cls, v: str) -> str:
        return _bcrypt_limit(v)


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    first_name: str
    last_name: str
    role: str
    subscription_plan: str
    last_login: datetime | None = None
    created_at: datetime


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def bcrypt_limit(cls, v: str) -> str:
        return _bcrypt_limit(v)


class ProfileUpdate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)

    @field_validator("new_password")
    @classmethod
    def bcrypt_limit(cls, v: str) -> str:
        return _bcrypt_limit(v)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# --- lab tests ---


class LabTestResultIn(BaseModel):
    name: str
    value: float
    unit: str
    reference_range_low: float | None = None
    reference_range_high: float | None = None
    # None -> вычисляется по референсам при сохранении
    is_abnormal: bool | None = None


class LabTestPayload(BaseModel):
    type: LabTestType
    name: str
    provider: str
    test_date: date
    results: list[LabTestResultIn] = []
    raw_file_url: str | None = None
    next_test_date: date | None = None
    notes: str | None = None


class LabTestResultPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    value: float
    unit: str
    reference_range_low: float | None = None
    reference_range_high: float | None = None
    is_abnormal: bool


class LabTestPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    name: str
    provider: str
    test_date: date
    status: LabTestStatus
    results: list[LabTestResultPublic] = []
    raw_file_url: str | None = None
    next_test_date: date | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class LabTestSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    name: str
    provider: str
    test_date: date


class HistoryPoint(BaseModel):
    test_date: date
    value: float | None = None
    reference_range_low: float | None = None
    reference_range_high: float | None = None
    is_abnormal: bool = False
    deviation: str | None = None


class UploadResponse(BaseModel):
    file_url: str
    object_name: str


# --- supplements ---


class HealthCondition(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)


class SupplementPayload(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    benefits: list[str]
    category: SupplementCategory
    recommended_dosage: str = Field(min_length=1, max_length=255)
    recommended_for_conditions: list[HealthCondition] = []
    contraindications: list[str] = []
    price: float = Field(ge=0)
    image_url: str | None = None
    in_stock: bool = True


class SupplementPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    benefits: list[str] = []
    category: str
    recommended_dosage: str
    recommended_for_conditions: list[HealthCondition] = []
    contraindications: list[str] = []
    price: float
    image_url: str | None = None
    in_stock: bool


class SupplementSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    recommended_dosage: str
    price: float
    in_stock: bool


# --- recommendations ---


class RecommendationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lab_test_id: int
    supplement_id: int
    reason: str
    priority: int
    dosage: str | None = None
    is_accepted: bool
    created_at: datetime
    supplement: SupplementSummary | None = None


class RecommendationDetail(RecommendationPublic):
    lab_test: LabTestSummary | None = None


class RecommendationStatusUpdate(BaseModel):
    is_accepted: bool
