# backend/utils/google_client.py
import httpx
import logging
from config import settings

logger = logging.getLogger(__name__)

class GoogleAuthError(Exception):
    """Google rejected the code or returned an unusable ID token."""

class GoogleOAuthClient:
    def __init__(self):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI
        self.token_url = settings.GOOGLE_TOKEN_URL
        self.tokeninfo_url = settings.GOOGLE_TOKENINFO_URL

    async def exchange_code(self, code: str) -> dict:
        # Trade the authorization code from the frontend for Google tokens
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        }
        async with httpx.AsyncClient() as client:
            try:
                response = await client.post(self.token_url, data=payload)
                if response.status_code == 400:
                    raise GoogleAuthError("Invalid authorization code")
                response.raise_for_status()
                return response.json()
            except (httpx.RequestError, httpx.HTTPStatusError) as e:
                logger.error(f"Google token exchange error: {e}")
                raise

    async def verify_id_token(self, id_token: str) -> dict:
        # Let Google validate the signature, then check it was issued for us
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(self.tokeninfo_url, params={"id_token": id_token})
            except httpx.RequestError as e:
                logger.error(f"Google tokeninfo error: {e}")
                raise
        if response.status_code != 200:
            raise GoogleAuthError("Invalid ID token")

        claims = response.json()
        if claims.get("aud") != self.client_id:
            raise GoogleAuthError("ID token was issued for another client")
        if not claims.get("email"):
            raise GoogleAuthError("ID token carries no e-mail")
        return claims

    async def authenticate(self, code: str) -> dict:
        tokens = await self.exchange_code(code)
        id_token = tokens.get("id_token")
        if not id_token:
            raise GoogleAuthError("Token response carries no ID token")
        return await self.verify_id_token(id_token)

google_client = GoogleOAuthClient()
