"""
API routes for the quote browser.
Quote browsing, accounts, favorites and user-submitted quotes.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from quote_manager import QuoteManager
from stores import QuoteRecord
from utils.security_utils import TokenClaims

from .dependencies import get_quote_manager, get_current_user
from .models import (
    QuoteInput, QuoteResponse, RegisterRequest, LoginRequest, AuthResponse,
    FavoriteAddRequest, FavoriteRemoveRequest, FavoritesResponse
)

router = APIRouter()


def _quotes(records: List[QuoteRecord]) -> List[Dict[str, Any]]:
    return [record.to_dict() for record in records]


# System Status
@router.get("/status", tags=["System"])
async def get_system_status(request: Request, manager: QuoteManager = Depends(get_quote_manager)):
    """获取系统状态"""
    status = manager.get_system_status()
    task_scheduler = getattr(request.app.state, "task_scheduler", None)
    if task_scheduler is not None:
        status["scheduler"] = task_scheduler.get_all_jobs_status()
    return status


# Quotes
@router.get("/random-quote", response_model=QuoteResponse, response_model_exclude_none=True, tags=["Quotes"])
async def get_random_quote(manager: QuoteManager = Depends(get_quote_manager)):
    """随机名言"""
    quote = await manager.get_random_quote()
    return quote.to_dict()


@router.get("/quotes/category/{label}", response_model=List[QuoteResponse],
            response_model_exclude_none=True, tags=["Quotes"])
async def get_quotes_by_category(label: str, manager: QuoteManager = Depends(get_quote_manager)):
    """按分类获取名言"""
    return _quotes(await manager.get_quotes_by_category(label))


@router.get("/categories", response_model=List[str], tags=["Quotes"])
async def get_categories(manager: QuoteManager = Depends(get_quote_manager)):
    """分类列表"""
    return await manager.get_categories()


@router.post("/add-quote", response_model=QuoteResponse, response_model_exclude_none=True,
             status_code=201, tags=["Quotes"])
async def add_quote(body: QuoteInput,
                    claims: TokenClaims = Depends(get_current_user),
                    manager: QuoteManager = Depends(get_quote_manager)):
    """提交名言"""
    quote = await manager.add_quote(body.content, body.author, body.categories, added_by=claims.username)
    return quote.to_dict()


# Auth
@router.post("/auth/register", response_model=AuthResponse, status_code=201, tags=["Auth"])
async def register(body: RegisterRequest, manager: QuoteManager = Depends(get_quote_manager)):
    """注册"""
    user, token = await manager.register(body.username, body.email, body.password)
    return {"message": "User created successfully", "token": token, "user": user.to_public_dict()}


@router.post("/auth/login", response_model=AuthResponse, tags=["Auth"])
async def login(body: LoginRequest, manager: QuoteManager = Depends(get_quote_manager)):
    """登录"""
    user, token = await manager.login(body.email, body.password)
    return {"message": "Login successful", "token": token, "user": user.to_public_dict()}


# Favorites
@router.get("/favorites", response_model=List[QuoteResponse], response_model_exclude_none=True, tags=["Favorites"])
async def get_favorites(claims: TokenClaims = Depends(get_current_user),
                        manager: QuoteManager = Depends(get_quote_manager)):
    """收藏列表"""
    return _quotes(manager.get_favorites(claims.user_id))


@router.post("/favorites", response_model=FavoritesResponse, response_model_exclude_none=True,
             status_code=201, tags=["Favorites"])
async def add_favorite(body: FavoriteAddRequest,
                       claims: TokenClaims = Depends(get_current_user),
                       manager: QuoteManager = Depends(get_quote_manager)):
    """添加收藏"""
    quote = QuoteRecord(body.quote.content, body.quote.author, body.quote.categories or [],
                        added_by=body.quote.addedBy)
    favorites = await manager.add_favorite(claims.user_id, quote)
    return {"message": "Quote added to favorites", "favorites": _quotes(favorites)}


@router.delete("/favorites", response_model=FavoritesResponse, response_model_exclude_none=True, tags=["Favorites"])
async def remove_favorite(body: FavoriteRemoveRequest,
                          claims: TokenClaims = Depends(get_current_user),
                          manager: QuoteManager = Depends(get_quote_manager)):
    """取消收藏"""
    favorites = await manager.remove_favorite(claims.user_id, body.content, body.author)
    return {"message": "Quote removed from favorites", "favorites": _quotes(favorites)}
