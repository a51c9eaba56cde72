import re
from enum import Enum
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

INFINITIVE_VERBS = (
    "gestionar", "crear", "actualizar", "eliminar", "consultar", "registrar",
    "modificar", "validar", "procesar", "generar", "obtener", "establecer",
    "configurar", "sincronizar", "enviar", "recibir", "ver", "mostrar",
    "listar", "buscar", "filtrar", "exportar", "importar", "calcular",
    "analizar", "reportar", "administrar", "mantener", "controlar", "supervisar",
    "revisar", "aprobar", "rechazar", "autorizar", "denegar", "bloquear",
    "desbloquear", "activar", "desactivar", "habilitar", "deshabilitar",
    "parametrizar", "personalizar", "monitorear", "auditar", "verificar",
    "comprobar", "evaluar", "documentar", "clasificar", "organizar", "ordenar",
    "ejecutar", "programar", "automatizar", "migrar", "transferir", "convertir",
    "integrar", "conectar", "notificar", "informar", "publicar", "consolidar",
)

FILE_NAME_PATTERN = re.compile(r"^[A-Z]{2}\d{3}.+$")


class _FormModel(BaseModel):
    # Accept both the camelCase keys sent by the web form and snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


class UseCaseType(str, Enum):
    ENTITY = "entity"
    API = "api"
    SERVICE = "service"


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    EMAIL = "email"


class EntityField(_FormModel):
    name: str = Field(min_length=1)
    type: FieldType = FieldType.TEXT
    length: Optional[int] = Field(default=None, gt=0)
    mandatory: bool = False
    description: Optional[str] = None


class TestStep(_FormModel):
    number: int = Field(gt=0)
    action: str = ""
    input_data: str = ""
    expected_result: str = ""
    observations: str = ""
    status: str = "Pendiente"


class GeneratedWireframes(_FormModel):
    """Wireframe images as raw bytes, data URLs, base64 text or asset paths."""

    search_wireframe: Optional[Union[bytes, str]] = None
    form_wireframe: Optional[Union[bytes, str]] = None


class UseCaseForm(_FormModel):
    use_case_type: UseCaseType
    client_name: str = Field(min_length=1)
    project_name: str = Field(min_length=1)
    use_case_code: str = Field(min_length=1)
    use_case_name: str = Field(min_length=1)
    file_name: str = Field(min_length=1)
    description: str = Field(min_length=1)

    business_rules: Optional[str] = None
    special_requirements: Optional[str] = None
    preconditions: Optional[str] = None
    postconditions: Optional[str] = None

    # Entity
    search_filters: List[str] = []
    result_columns: List[str] = []
    entity_fields: List[EntityField] = []

    # API
    api_endpoint: Optional[str] = None
    http_method: Optional[Literal["GET", "POST", "PUT", "PATCH", "DELETE"]] = None
    request_format: Optional[str] = None
    response_format: Optional[str] = None
    error_codes: Optional[List[str]] = None

    # Service
    service_frequency: Optional[str] = None
    execution_time: Optional[str] = None
    configuration_paths: Optional[str] = None
    web_service_credentials: Optional[str] = None

    generate_wireframes: bool = False
    generated_wireframes: Optional[GeneratedWireframes] = None

    generate_test_case: bool = False
    test_case_objective: Optional[str] = None
    test_case_preconditions: Optional[str] = None
    test_steps: List[TestStep] = []

    ai_model: str = "demo"

    @field_validator("use_case_name")
    @classmethod
    def _starts_with_infinitive(cls, value: str) -> str:
        if not value.lower().startswith(INFINITIVE_VERBS):
            raise ValueError("Debe comenzar con un verbo en infinitivo (Gestionar, Crear, Ver, Mostrar, etc.)")
        return value

    @field_validator("file_name")
    @classmethod
    def _file_name_format(cls, value: str) -> str:
        if not FILE_NAME_PATTERN.match(value):
            raise ValueError(
                "Formato requerido: 2 letras + 3 números + nombre del caso de uso (ej: AB123GestionarUsuarios)"
            )
        return value

    @field_validator("http_method", mode="before")
    @classmethod
    def _upper_method(cls, value):
        return value.upper() if isinstance(value, str) and value else value or None

    @field_validator("error_codes")
    @classmethod
    def _status_codes(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        codes = [str(code).strip() for code in value if str(code).strip()]
        for code in codes:
            if not re.fullmatch(r"[1-5]\d{2}", code):
                raise ValueError(f"Invalid HTTP status code: {code}")
        return codes or None

    @field_validator("test_steps")
    @classmethod
    def _sequential_steps(cls, steps: List[TestStep]) -> List[TestStep]:
        for expected, step in enumerate(steps, 1):
            if step.number != expected:
                raise ValueError(f"Test steps must be numbered sequentially from 1; step {expected} has number {step.number}")
        return steps

    @model_validator(mode="after")
    def _entity_has_fields(self) -> "UseCaseForm":
        if self.use_case_type == UseCaseType.ENTITY and not self.entity_fields:
            raise ValueError("Entity use cases need at least one entity field")
        return self


class UseCaseRecord(BaseModel):
    id: str
    form: UseCaseForm
    generated_content: Optional[str] = None
    created_at: str
    updated_at: str


class UseCaseUpdate(BaseModel):
    """Partial update; keys follow the form's field names (either casing)."""

    changes: dict = {}
    generated_content: Optional[str] = None


class GenerateDocxRequest(_FormModel):
    form_data: UseCaseForm
    file_name: Optional[str] = None
