import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm

from notes_database import CredentialStore, NoteStore, open_stores

from .config import Settings, load_settings
from .errors import AuthorizationError, install_exception_handlers
from .gate import AuthenticatedIdentity, authorize
from .schemas import NoteCreate, NoteOut, NoteUpdate, SignupOut, Token, UserCreate, UserOut
from .security import PasswordHasher, TokenService
from .services import AuthService, NoteService

logger = logging.getLogger(__name__)

# auto_error is off so a missing header reaches the gate and is rejected there
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

router = APIRouter()


# Dependencies, resolved from the objects the app factory put on app.state
def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens

def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service

def get_note_service(request: Request) -> NoteService:
    return request.app.state.note_service

def get_current_identity(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(get_token_service),
    auth: AuthService = Depends(get_auth_service),
) -> AuthenticatedIdentity:
    """Runs the auth gate and attaches the identity to the request."""
    identity = authorize(token, tokens)
    if not auth.user_exists(identity.user_id):
        logger.info("Request rejected: token subject %s does not exist", identity.user_id)
        raise AuthorizationError(reason="unknown subject")
    request.state.identity = identity
    return identity


# Root Health Check
@router.get("/", summary="Health Check", tags=["General"])
def health_check():
    """Simple health check endpoint."""
    return {"message": "Healthy"}


#####################
# AUTH ENDPOINTS
#####################

# PUBLIC_INTERFACE
@router.post("/auth/register", response_model=SignupOut, status_code=201, summary="Register a new user", tags=["Authentication"])
def register(user: UserCreate, auth: AuthService = Depends(get_auth_service)):
    """
    Register a new user.
    Returns the id assigned to the account.
    """
    record = auth.signup(user.username, user.password)
    return SignupOut(user_id=record.id, username=record.username)

# PUBLIC_INTERFACE
@router.post("/auth/login", response_model=Token, summary="Login and get JWT token", tags=["Authentication"])
def login(form_data: OAuth2PasswordRequestForm = Depends(), auth: AuthService = Depends(get_auth_service)):
    """
    User login.
    Returns a bearer token on success. Unknown usernames and wrong passwords
    get the same answer.
    """
    issued = auth.login(form_data.username, form_data.password)
    return Token(access_token=issued.access_token, token_type=issued.token_type, expires_in=issued.expires_in)

# PUBLIC_INTERFACE
@router.get("/auth/me", response_model=UserOut, summary="Get current user profile", tags=["Authentication"])
def get_profile(
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    auth: AuthService = Depends(get_auth_service),
):
    """
    Get details about the current authed user.
    """
    return auth.profile(identity)


#####################
# NOTES ENDPOINTS
#####################

# PUBLIC_INTERFACE
@router.post("/notes/", response_model=NoteOut, status_code=201, summary="Create a new note", tags=["Notes"])
def create_note(
    note: NoteCreate,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    notes: NoteService = Depends(get_note_service),
):
    """
    Create a new note for the authenticated user.
    """
    return notes.create(identity, note.title, note.content)

# PUBLIC_INTERFACE
@router.get("/notes/", response_model=List[NoteOut], summary="List all user notes", tags=["Notes"])
def list_notes(
    q: Optional[str] = Query(None, description="Search term for note title or content"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    notes: NoteService = Depends(get_note_service),
):
    """
    Get all notes for the authenticated user, most recently updated first.
    Supports filtering by search term (on title or content).
    """
    return notes.list(identity, query=q, skip=skip, limit=limit)

# PUBLIC_INTERFACE
@router.get("/notes/{note_id}", response_model=NoteOut, summary="Get a single note", tags=["Notes"])
def get_note(
    note_id: int,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    notes: NoteService = Depends(get_note_service),
):
    """
    Retrieve a single note belonging to the authenticated user.
    """
    return notes.get(identity, note_id)

# PUBLIC_INTERFACE
@router.put("/notes/{note_id}", response_model=NoteOut, summary="Update a note", tags=["Notes"])
def update_note(
    note_id: int,
    note_update: NoteUpdate,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    notes: NoteService = Depends(get_note_service),
):
    """
    Update a note belonging to the authenticated user. Omitted fields are kept.
    """
    return notes.update(identity, note_id, title=note_update.title, content=note_update.content)

# PUBLIC_INTERFACE
@router.delete("/notes/{note_id}", status_code=204, summary="Delete a note", tags=["Notes"])
def delete_note(
    note_id: int,
    identity: AuthenticatedIdentity = Depends(get_current_identity),
    notes: NoteService = Depends(get_note_service),
):
    """
    Delete a note belonging to the authenticated user.
    """
    notes.delete(identity, note_id)
    return Response(status_code=204)


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    credentials: Optional[CredentialStore] = None,
    note_store: Optional[NoteStore] = None,
) -> FastAPI:
    """
    Builds the application.

    Settings default to the environment. Stores default to the backend named by
    the settings; pass both to share existing ones.
    """
    settings = settings or load_settings()

    if credentials is None or note_store is None:
        credentials, note_store = open_stores(settings.storage_backend, settings.database_url)

    tokens = TokenService(settings.secret_key, settings.algorithm, settings.access_token_ttl)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    app = FastAPI(
        title="Personal Notes Backend API",
        description="Backend API for handling user auth and personal notes management.",
        version="1.0.0",
        openapi_tags=[
            {"name": "Authentication", "description": "User registration, login, and security"},
            {"name": "Notes", "description": "Create, update, view, delete, search notes"}
        ]
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.tokens = tokens
    app.state.auth_service = AuthService(credentials, hasher, tokens)
    app.state.note_service = NoteService(note_store)

    app.include_router(router)
    install_exception_handlers(app)
    logger.info("Notes service ready: %r", settings)
    return app
