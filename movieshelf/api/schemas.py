from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


#___________________________________________________________________________________________________
# General schemas
#___________________________________________________________________________________________________

class ORMModel(BaseModel):
    """Base for response models that are built from SQLAlchemy rows."""
    model_config = ConfigDict(from_attributes=True)


class UserResponse(ORMModel):
    """Public user record. Never contains the password hash.

    Fields:
    - id: numeric user identifier
    - name: display name
    - email: lower-cased email address
    - created_at: registration time
    """
    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="User email address")
    created_at: datetime = Field(..., description="Registration time (UTC)")


class CollectionResponse(ORMModel):
    id: int
    user_id: int
    name: str
    created_at: datetime


class CollectionItemResponse(ORMModel):
    id: int
    collection_id: int
    tmdb_id: int
    title: str
    poster_path: Optional[str] = None


class RatingResponse(ORMModel):
    id: int
    user_id: int
    tmdb_id: int
    rating: int
    review: Optional[str] = None
    title: Optional[str] = None
    poster_path: Optional[str] = None
    created_at: datetime


#___________________________________________________________________________________________________
# Request schemas
#___________________________________________________________________________________________________

class RegisterRequest(BaseModel):
    """Request model used when creating a new user.

    All fields are optional on the schema level, the register endpoint reports missing
    values itself with a 400 response.

    Fields:
    - name: display name
    - email: user's email address, compared case-insensitive
    - password: plain-text password (will be hashed before storage)
    """
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="Plain-text password (will be hashed)")


class LoginRequest(BaseModel):
    """Request model for the login endpoint."""
    email: Optional[str] = Field(None, description="User email address")
    password: Optional[str] = Field(None, description="Plain-text password")


class CollectionCreateRequest(BaseModel):
    name: Optional[str] = Field(None, description="Name of the new collection")


class CollectionItemCreateRequest(BaseModel):
    """Movie to store inside a collection."""
    tmdb_id: int = Field(..., strict=True, gt=0, description="Movie ID in the external catalog", examples=[603])
    title: str = Field(..., min_length=1, description="Movie title")
    poster_path: Optional[str] = Field(None, description="Poster path as delivered by the catalog")


class RateMovieRequest(BaseModel):
    """Input schema for saving a rating. Missing title/poster keep the stored values."""
    tmdb_id: int = Field(..., strict=True, gt=0, description="Movie ID in the external catalog", examples=[603])
    rating: int = Field(..., strict=True, ge=1, le=5, description="Star rating between 1 and 5")
    review: Optional[str] = Field(None, description="Optional review text")
    title: Optional[str] = Field(None, description="Movie title")
    poster_path: Optional[str] = Field(None, description="Poster path")


#___________________________________________________________________________________________________
# Response schemas
#___________________________________________________________________________________________________

class AuthResponse(BaseModel):
    """Response of register and login.

    Fields:
    - success: always true, errors are reported by status code
    - token: the JWT access token
    - token_type: token type (always "bearer")
    - user: the public user record
    """
    success: bool = True
    token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    user: UserResponse


class MeResponse(BaseModel):
    user: UserResponse


class SuccessResponse(BaseModel):
    success: bool = True


class CollectionListResponse(BaseModel):
    collections: List[CollectionResponse]


class CollectionCreatedResponse(BaseModel):
    success: bool = True
    collection: CollectionResponse


class CollectionItemListResponse(BaseModel):
    items: List[CollectionItemResponse]


class CollectionItemCreatedResponse(BaseModel):
    success: bool = True
    item_id: int


class RatingListResponse(BaseModel):
    ratings: List[RatingResponse]


class RatingEnvelope(BaseModel):
    """Single rating lookup. rating is null if the user has not rated the movie."""
    rating: Optional[RatingResponse] = None


class RateMovieResponse(BaseModel):
    success: bool = True
    rating: RatingResponse
