"""
Request dependencies for the quote browser API.
Resolves the shared QuoteManager from the application state and the
authenticated user from the bearer token.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quote_manager import QuoteManager
from utils.exceptions import AuthenticationError, ErrorCodes
from utils.security_utils import TokenClaims


bearer_scheme = HTTPBearer(auto_error=False)


def get_quote_manager(request: Request) -> QuoteManager:
    return request.app.state.quote_manager


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    manager: QuoteManager = Depends(get_quote_manager),
) -> TokenClaims:
    """校验 Authorization: Bearer <token>

    缺少令牌返回 401，令牌无效或过期返回 403。
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", ErrorCodes.AUTH_MISSING_TOKEN)
    return manager.verify_token(credentials.credentials)
