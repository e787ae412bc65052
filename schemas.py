from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional, List
from datetime import datetime

from models import UserRole, TransactionKind, ApplicationStatus, ActivityStatus, ResourceType


def _required(value: str, label: str, min_length: int = 1) -> str:
    if value is None or not value.strip():
        raise ValueError(f'{label} is required')
    if len(value.strip()) < min_length:
        raise ValueError(f'{label} must be at least {min_length} characters')
    return value.strip()


# Auth

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    name: str

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 4:
            raise ValueError('Password must be at least 4 characters')
        return v

    @validator('name')
    def validate_name(cls, v):
        return _required(v, 'Name', 2)


class UserLogin(BaseModel):
    email: str
    password: str


class ProfileUpdate(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    bio: Optional[str] = None
    photo: Optional[str] = None  # Stored path or new base64 image
    current_password: str
    new_password: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        return _required(v, 'Name', 2)

    @validator('new_password')
    def validate_new_password(cls, v):
        if v and len(v) < 4:
            raise ValueError('New password must be at least 4 characters')
        return v or None


class ForgotPassword(BaseModel):
    email: str


class ResetPassword(BaseModel):
    token: str
    new_password: str

    @validator('new_password')
    def validate_new_password(cls, v):
        if len(v) < 4:
            raise ValueError('Password must be at least 4 characters')
        return v


# Account

class AmountRequest(BaseModel):
    amount: float = Field(..., allow_inf_nan=False)

    @validator('amount')
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v


class CollectRequest(BaseModel):
    amount: Optional[float] = Field(None, allow_inf_nan=False)

    @validator('amount')
    def validate_amount(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v


class AutoPaySettings(BaseModel):
    auto_pay: bool


# Applications and requests

class ApplicationCreate(BaseModel):
    vulnerable_name: str
    images: List[str] = []  # Base64 evidence images
    active_phone: Optional[str] = None
    alt_phone: Optional[str] = None
    guardian_name: Optional[str] = None
    country: Optional[str] = None
    district: Optional[str] = None
    county: Optional[str] = None
    sub_county: Optional[str] = None
    parish: Optional[str] = None
    village: Optional[str] = None
    chairperson_name: Optional[str] = None
    chairperson_phone: Optional[str] = None
    recommendation_letter: Optional[str] = None  # Base64 image

    @validator('vulnerable_name')
    def validate_name(cls, v):
        return _required(v, 'Vulnerable person name', 2)


class ReplyRequest(BaseModel):
    reply: str


class StatusRequest(BaseModel):
    status: str


class RegionalRequestCreate(BaseModel):
    requester_name: str
    contact: str
    need_description: str

    @validator('requester_name')
    def validate_name(cls, v):
        return _required(v, 'Requester name', 2)

    @validator('contact')
    def validate_contact(cls, v):
        return _required(v, 'Contact information')

    @validator('need_description')
    def validate_need(cls, v):
        return _required(v, 'Need description')


# Directory

class BranchCreate(BaseModel):
    region: str
    location: str
    is_head_office: bool = False
    officer_name: Optional[str] = None
    officer_bio: Optional[str] = None
    officer_photos: List[str] = []

    @validator('region')
    def validate_region(cls, v):
        return _required(v, 'Region')

    @validator('location')
    def validate_location(cls, v):
        return _required(v, 'Location')


class BranchUpdate(BranchCreate):
    pass


class BranchProfileUpdate(BaseModel):
    officer_name: Optional[str] = None
    officer_bio: Optional[str] = None
    officer_photo: Optional[str] = None


class OfficerCreate(BaseModel):
    name: str
    email: EmailStr
    password: str
    branch_name: str
    is_head_office: bool = False

    @validator('name')
    def validate_name(cls, v):
        return _required(v, 'Name', 2)

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 4:
            raise ValueError('Password must be at least 4 characters')
        return v

    @validator('branch_name')
    def validate_branch_name(cls, v):
        return _required(v, 'Branch name')


class OfficerUpdate(BaseModel):
    name: str
    email: EmailStr
    password: Optional[str] = None
    branch_id: Optional[int] = None

    @validator('name')
    def validate_name(cls, v):
        return _required(v, 'Name', 2)


class ActivityCreate(BaseModel):
    title: str
    description: Optional[str] = None

    @validator('title')
    def validate_title(cls, v):
        return _required(v, 'Title')


class ActivityUpdate(ActivityCreate):
    status: ActivityStatus = ActivityStatus.ACTIVE


class ResourceCreate(BaseModel):
    name: str
    type: ResourceType = ResourceType.DOCUMENT
    description: Optional[str] = None
    url: Optional[str] = None

    @validator('name')
    def validate_name(cls, v):
        return _required(v, 'Name')


class ResourceUpdate(ResourceCreate):
    pass


class DonationCreate(BaseModel):
    donor_name: Optional[str] = None
    amount: float = Field(..., allow_inf_nan=False)
    message: Optional[str] = None
    is_anonymous: bool = False

    @validator('amount')
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v


class ImpactStoryCreate(BaseModel):
    branch_id: Optional[int] = None
    title: str
    story: str
    beneficiary_name: Optional[str] = None
    image: Optional[str] = None  # Stored path or new base64 image

    @validator('title')
    def validate_title(cls, v):
        return _required(v, 'Title')

    @validator('story')
    def validate_story(cls, v):
        return _required(v, 'Story')


class ImpactStoryUpdate(ImpactStoryCreate):
    is_approved: bool = True


# Responses

class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    branch_id: Optional[int] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    photo: Optional[str] = None

    class Config:
        from_attributes = True


class AccountOut(BaseModel):
    user_id: int
    balance: float
    auto_pay: bool

    class Config:
        from_attributes = True


class TransactionOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    kind: TransactionKind
    amount: float
    created_at: datetime

    class Config:
        from_attributes = True


class ActivityOut(BaseModel):
    id: int
    branch_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    status: ActivityStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ResourceOut(BaseModel):
    id: int
    branch_id: Optional[int] = None
    name: str
    type: ResourceType
    description: Optional[str] = None
    url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BranchOut(BaseModel):
    id: int
    region: str
    location: str
    is_head_office: bool
    officer_name: Optional[str] = None
    officer_bio: Optional[str] = None
    officer_photo: Optional[str] = None
    officer_photos: List[str] = []

    @validator('officer_photos', pre=True, always=True)
    def default_photos(cls, v):
        return v or []

    class Config:
        from_attributes = True


class BranchDetail(BranchOut):
    activities: List[ActivityOut] = []
    resources: List[ResourceOut] = []


class ApplicationOut(BaseModel):
    id: int
    branch_id: Optional[int] = None
    vulnerable_name: str
    images: List[str] = []
    active_phone: Optional[str] = None
    alt_phone: Optional[str] = None
    guardian_name: Optional[str] = None
    country: Optional[str] = None
    district: Optional[str] = None
    county: Optional[str] = None
    sub_county: Optional[str] = None
    parish: Optional[str] = None
    village: Optional[str] = None
    chairperson_name: Optional[str] = None
    chairperson_phone: Optional[str] = None
    recommendation_letter: str
    status: ApplicationStatus
    officer_reply: Optional[str] = None
    created_at: datetime

    @validator('images', pre=True, always=True)
    def default_images(cls, v):
        return v or []

    class Config:
        from_attributes = True


class RegionalRequestOut(BaseModel):
    id: int
    branch_id: Optional[int] = None
    requester_name: str
    contact: str
    need_description: str
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class DonationOut(BaseModel):
    id: int
    donor_name: str
    amount: float
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegionalDonationOut(DonationOut):
    branch_id: Optional[int] = None
    is_anonymous: bool


class ImpactStoryOut(BaseModel):
    id: int
    branch_id: Optional[int] = None
    title: str
    story: str
    beneficiary_name: Optional[str] = None
    image: Optional[str] = None
    is_approved: bool
    created_at: datetime

    class Config:
        from_attributes = True
