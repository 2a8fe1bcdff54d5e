"""
API data models for the quote browser.
Pydantic models for request/response validation.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class QuoteInput(BaseModel):
    """名言输入模型"""
    content: str = Field(..., min_length=1, description="名言内容")
    author: str = Field(..., min_length=1, description="作者")
    categories: Optional[List[str]] = Field(None, description="分类标签")


class QuoteResponse(BaseModel):
    """名言响应模型"""
    content: str
    author: str
    categories: List[str] = Field(default_factory=list)
    addedBy: Optional[str] = Field(None, description="提交者用户名，仅用户提交的名言存在")


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str


class AuthResponse(BaseModel):
    """注册/登录响应"""
    message: str
    token: str
    user: UserResponse


class FavoriteQuoteInput(QuoteInput):
    """收藏的名言，保留用户提交名言的提交者"""
    addedBy: Optional[str] = Field(None, description="提交者用户名")


class FavoriteAddRequest(BaseModel):
    quote: FavoriteQuoteInput


class FavoriteRemoveRequest(BaseModel):
    content: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)


class FavoritesResponse(BaseModel):
    message: str
    favorites: List[QuoteResponse]


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
