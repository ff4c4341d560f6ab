"""Request / response models for the OTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SendOtpRequest(BaseModel):
    email: str | None = None


class SendOtpResponse(BaseModel):
    ok: bool = True


class VerifyOtpRequest(BaseModel):
    email: str | None = None
    code: str | None = None


class VerifyOtpResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    verified: bool = True
    custom_token: str = Field(alias="customToken")


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str
    app: str
    store: str
