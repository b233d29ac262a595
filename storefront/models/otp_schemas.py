from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ResetRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address to send the reset OTP to")


class ResetVerifyRequest(BaseModel):
    email: EmailStr = Field(..., description="Email address")
    otp: str = Field(..., min_length=1, max_length=12, description="OTP code received by email")


class ResetConfirmRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr = Field(..., description="Email address")
    otp: str = Field(..., min_length=1, max_length=12, description="Verified OTP code")
    new_password: str = Field(..., alias="newPassword", max_length=128, description="New password")


class ResetResponse(BaseModel):
    success: bool = True
    msg: str
