"""로그인 요청·구글 응답·발급 토큰 스키마."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from debrief.schemas.user import UserBase


class GoogleLoginRequest(BaseModel):
    """프론트엔드가 구글 리다이렉트로 받은 Authorization Code."""

    model_config = ConfigDict(extra="forbid")

    code: str = Field(..., min_length=1, max_length=2000)
    redirect_uri: str | None = Field(None, max_length=2048)


class GoogleTokenExchange(BaseModel):
    """oauth2.googleapis.com/token 응답 중 사용하는 필드. id_token 필수."""

    model_config = ConfigDict(extra="ignore")

    id_token: str
    access_token: str
    expires_in: int | None = None


class GoogleIdentity(BaseModel):
    """서명 검증된 id_token 클레임. sub가 users.provider_user_id."""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., min_length=1)
    email: str | None = None
    name: str | None = None
    given_name: str | None = None
    picture: str | None = None

    @field_validator("sub", mode="before")
    @classmethod
    def sub_stripped(cls, v: object) -> str:
        return str(v or "").strip()

    def to_user_base(self) -> UserBase:
        """표시 이름 계산용 user_metadata(name, first_name, avatar_url). 빈 값은 뺀다."""
        metadata = {
            key: value
            for key, value in (
                ("name", self.name),
                ("first_name", self.given_name),
                ("avatar_url", self.picture),
            )
            if value
        }
        return UserBase(email=self.email, user_metadata=metadata or None)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token 만료까지 남은 초")
