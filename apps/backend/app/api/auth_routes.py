"""
===============================================================================
TARJETA CRC — app/api/auth_routes.py (Autenticación y Sesión)
===============================================================================

Responsabilidades:
  - Exponer login / logout / register / refresh / me.
  - Gestionar las cookies httpOnly `token` y `refreshToken` (SameSite=Strict,
    Secure en producción) de forma consistente.
  - Traducir payloads HTTP (camelCase del front) a inputs de casos de uso.
  - Montarse en la raíz y bajo /api/auth (mismos handlers).

Patrones aplicados:
  - Thin Controller: la lógica vive en application/usecases/auth.
  - Errores tipados (FleetError) mapeados por api/exception_handlers.py.

Colaboradores:
  - application.usecases.auth (LoginUseCase, RegisterUseCase, RefreshSessionUseCase)
  - identity.session.require_session
  - api.dependencies (container / use cases)
===============================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..application.usecases.auth import (
    AuthResult,
    BusinessCustomerData,
    IndividualCustomerData,
    LoginInput,
    LoginUseCase,
    RefreshSessionUseCase,
    RegisterInput,
    RegisterUseCase,
)
from ..crosscutting.config import Settings
from ..crosscutting.error_responses import OPENAPI_ERROR_RESPONSES
from ..crosscutting.exceptions import AuthenticationError, ValidationError
from ..domain.entities import (
    DEFAULT_COUNTRY,
    Address,
    ContactPerson,
    CustomerType,
    OrganizationType,
)
from ..domain.repositories import AccountRepository
from ..identity.session import SessionContext, require_session
from .dependencies import (
    get_account_repository,
    get_app_settings,
    get_login_use_case,
    get_refresh_use_case,
    get_register_use_case,
)
from .schemas import (
    AccountResponse,
    AuthResponse,
    EmailModel,
    to_account_response,
    to_auth_response,
)

router = APIRouter(tags=["auth"], responses=OPENAPI_ERROR_RESPONSES)

AUTH_API_PREFIX = "/api/auth"


# -----------------------------------------------------------------------------
# Modelos HTTP (DTOs)
# -----------------------------------------------------------------------------
class LoginRequest(EmailModel):
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=512)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AddressPayload(_CamelModel):
    street: str = ""
    house_number: str = ""
    city: str = ""
    postal_code: str = ""
    country: str = DEFAULT_COUNTRY


class ContactPersonPayload(_CamelModel):
    first_name: str
    last_name: str
    position: str = ""
    phone: str = ""
    email: str = ""
    is_primary: bool = False


class UserDataPayload(_CamelModel):
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=512)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    phone: str | None = None


class CustomerDataPayload(_CamelModel):
    """Campos de perfil; se usan los que correspondan a customerType."""

    first_name: str = ""
    last_name: str = ""
    company_name: str = ""
    organization_type: OrganizationType = OrganizationType.COMPANY
    email: str = ""
    phone: str | None = None
    vat_number: str = ""
    address: AddressPayload = Field(default_factory=AddressPayload)
    contact_persons: list[ContactPersonPayload] = Field(default_factory=list)


class RegisterRequest(_CamelModel):
    user_data: UserDataPayload | None = None
    customer_data: CustomerDataPayload | None = None
    customer_type: str = CustomerType.INDIVIDUAL.value


class LogoutResponse(BaseModel):
    ok: bool = True


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def set_session_cookies(response: Response, result: AuthResult, settings: Settings) -> None:
    """Setea cookies httpOnly de acceso y refresh."""
    for name, issued in (
        (settings.jwt_cookie_name, result.access),
        (settings.jwt_refresh_cookie_name, result.refresh),
    ):
        response.set_cookie(
            key=name,
            value=issued.token,
            httponly=True,
            secure=settings.jwt_cookie_secure,
            samesite="strict",
            max_age=issued.expires_in,
            path="/",
        )


def clear_session_cookies(response: Response, settings: Settings) -> None:
    for name in (settings.jwt_cookie_name, settings.jwt_refresh_cookie_name):
        response.delete_cookie(
            key=name,
            path="/",
            samesite="strict",
            secure=settings.jwt_cookie_secure,
            httponly=True,
        )


def _to_address(payload: AddressPayload) -> Address:
    return Address(
        street=payload.street,
        house_number=payload.house_number,
        city=payload.city,
        postal_code=payload.postal_code,
        country=payload.country or DEFAULT_COUNTRY,
    )


def _to_register_input(req: RegisterRequest) -> RegisterInput:
    if req.user_data is None:
        raise ValidationError("Completá todos los campos obligatorios")

    customer_type = (
        CustomerType.BUSINESS
        if req.customer_type == CustomerType.BUSINESS.value
        else CustomerType.INDIVIDUAL
    )
    data = req.customer_data
    customer = None
    if data is not None and customer_type == CustomerType.BUSINESS:
        customer = BusinessCustomerData(
            company_name=data.company_name,
            organization_type=data.organization_type,
            email=data.email,
            phone=data.phone or "",
            vat_number=data.vat_number,
            address=_to_address(data.address),
            contact_persons=tuple(
                ContactPerson(**cp.model_dump()) for cp in data.contact_persons
            ),
        )
    elif data is not None:
        customer = IndividualCustomerData(
            first_name=data.first_name or req.user_data.first_name,
            last_name=data.last_name or req.user_data.last_name,
            email=data.email,
            phone=data.phone or "",
            address=_to_address(data.address),
        )

    user = req.user_data
    return RegisterInput(
        email=user.email,
        password=user.password,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone or "",
        customer_type=customer_type,
        customer=customer,
    )


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------
@router.post("/login", response_model=AuthResponse)
def login(
    req: LoginRequest,
    response: Response,
    use_case: LoginUseCase = Depends(get_login_use_case),
    settings: Settings = Depends(get_app_settings),
):
    """
    Inicia sesión.

    - 400 faltan campos, 401 credenciales inválidas, 423 bloqueada,
      403 desactivada.
    - Setea cookies `token` y `refreshToken`.
    """
    result = use_case.execute(LoginInput(email=req.email, password=req.password))
    set_session_cookies(response, result, settings)
    return to_auth_response(result)


@router.post("/logout", response_model=LogoutResponse)
def logout(response: Response, settings: Settings = Depends(get_app_settings)):
    """Borra las cookies de sesión. Idempotente, no requiere sesión."""
    clear_session_cookies(response, settings)
    return LogoutResponse()


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    req: RegisterRequest,
    response: Response,
    use_case: RegisterUseCase = Depends(get_register_use_case),
    settings: Settings = Depends(get_app_settings),
):
    """Alta de cliente (cuenta + perfil). Email duplicado -> 400 CONFLICT."""
    result = use_case.execute(_to_register_input(req))
    set_session_cookies(response, result, settings)
    return to_auth_response(result)


@router.post("/refresh", response_model=AuthResponse)
def refresh(
    request: Request,
    response: Response,
    use_case: RefreshSessionUseCase = Depends(get_refresh_use_case),
    settings: Settings = Depends(get_app_settings),
):
    """Rota el par de tokens a partir de la cookie `refreshToken`."""
    result = use_case.execute(request.cookies.get(settings.jwt_refresh_cookie_name))
    set_session_cookies(response, result, settings)
    return to_auth_response(result)


@router.get("/me", response_model=AccountResponse)
def me(
    session: SessionContext = Depends(require_session),
    accounts: AccountRepository = Depends(get_account_repository),
):
    """Devuelve la cuenta autenticada."""
    account = accounts.get_account_by_id(session.account_id)
    if account is None:
        raise AuthenticationError("Autenticación requerida")
    return to_account_response(account)


def include_auth_routes(app: FastAPI) -> None:
    """
    Incluye el router en la raíz y el alias /api/auth (mismos handlers).

    El alias queda fuera del schema OpenAPI para no duplicar operation ids.
    """
    app.include_router(router)
    app.include_router(router, prefix=AUTH_API_PREFIX, include_in_schema=False)
