from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from schemas.base import APIModel

# Schema for user authentication credentials
class UserLogin(APIModel):
    email: EmailStr
    password: str

# Schema for user registration requests
class UserCreate(APIModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=3)

# Output schema for user profile details
class UserResponse(APIModel):
    id: str
    email: EmailStr
    full_name: Optional[str] = None
    created_at: Optional[datetime] = None

# Schema for JWT authentication token response
class Token(BaseModel):
    token: str

# Authorization code handed over by the Google sign-in frontend
class GoogleLogin(APIModel):
    code: Optional[str] = None

class ForgotPassword(APIModel):
    email: EmailStr

class ResetPassword(APIModel):
    token: str
    password: str = Field(min_length=6)

class Message(BaseModel):
    message: str
