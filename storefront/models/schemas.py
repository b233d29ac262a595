"""
Pydantic models for API requests and responses.

JSON field names are camelCase, matching what the storefront front end
sends and caches; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime

PRODUCT_CATEGORIES = (
    "fashion", "electronic", "furniture", "kitchen", "toys",
    "cosmetic", "food", "sports", "appliances",
)


# Authentication Models
class UserRegister(BaseModel):
    """User registration request."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "seller@example.com",
                "password": "SecurePass123!",
                "fullName": "Asha Verma",
                "role": "seller"
            }
        },
    )

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password")
    full_name: Optional[str] = Field(None, alias="fullName", max_length=255, description="Full name")
    role: Literal["user", "seller"] = Field("user", description="Account role")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.lower()


class UserLogin(BaseModel):
    """User login request."""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")


class UserProfile(BaseModel):
    """User profile as the storefront displays and caches it."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    full_name: str = Field("", alias="fullName")
    email: str
    phone: str = ""
    address: str = ""
    dob: str = ""
    gender: str = ""
    role: str = "user"
    bio: str = ""
    profile_image: str = Field("", alias="profileImage")

    @classmethod
    def from_user(cls, user: dict) -> "UserProfile":
        fields = ("full_name", "phone", "address", "dob", "gender", "bio", "profile_image")
        return cls(
            id=str(user["id"]),
            email=user["email"],
            role=user.get("role") or "user",
            **{name: user.get(name) or "" for name in fields},
        )


class TokenResponse(BaseModel):
    """Authentication token response."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")
    user: UserProfile = Field(..., description="User data")


# Profile Models
class ProfileUpdate(BaseModel):
    """Profile edit form. Omitted fields stay unchanged; role cannot be edited."""
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(None, alias="fullName", max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=32)
    address: Optional[str] = Field(None, max_length=1000)
    dob: Optional[str] = Field(None, max_length=32)
    gender: Optional[str] = Field(None, max_length=32)
    bio: Optional[str] = Field(None, max_length=2000)
    profile_image: Optional[str] = Field(None, alias="profileImage", max_length=2048)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else value.lower()


class ProfileResponse(BaseModel):
    success: bool = True
    message: str = ""
    user: UserProfile


# Product Models
class MediaItemSchema(BaseModel):
    type: Literal["image", "video"]
    url: str = Field(..., min_length=1)


class ProductCreate(BaseModel):
    """Seller product form payload, created together with its opening stock."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", max_length=255)
    category: str = ""
    description: str = Field("", max_length=5000)
    stock: int = 0
    price: float = 0
    image: str = ""
    images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    delivery: str = Field("", max_length=255)
    seller_id: Optional[str] = Field(None, alias="sellerId")
    media_order: Optional[List[MediaItemSchema]] = Field(None, alias="mediaOrder")


class ProductOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    seller_id: str = Field(..., alias="sellerId")
    name: str
    category: str
    description: str = ""
    stock: int
    price: float
    image: str = ""
    images: List[str]
    videos: List[str]
    delivery: str = ""
    media_order: List[MediaItemSchema] = Field(..., alias="mediaOrder")
    created_at: datetime = Field(..., alias="createdAt")


class ProductResponse(BaseModel):
    success: bool = True
    product: ProductOut


class UploadResponse(BaseModel):
    success: bool = True
    filename: str
    url: str
    secure_url: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    database_connected: bool = Field(..., description="Database connection status")
    email_backend: str = Field(..., description="Configured email backend")
    timestamp: datetime = Field(default_factory=datetime.now)
