"""
Use-case document section assembler.

Turns a validated UseCaseForm into the ordered body blocks of the document:
title, project information, description, the variant's main and alternative
flows, business rules, special requirements, pre/postconditions, optional
wireframes and test cases, and the revision history table (always last).

Each variant has its own pure assembler; ``assemble_sections`` dispatches on
``form.use_case_type`` and wraps the result with the shared sections.
"""

import itertools
import logging
import re
from datetime import date
from pathlib import Path
from typing import Callable, Dict, List, Optional

from models.document_blocks import DocumentBlock, Paragraph
from models.use_case import EntityField, FieldType, UseCaseForm, UseCaseType
from services import numbering
from services.asset_resolver import ImageSource, image_source_loaders, resolve_first
from services.block_builders import (
    heading_paragraph, image_block, list_item, table, text_paragraph,
)
from services.doc_constants import (
    BORDER_GRAY, BORDER_SIZE, HEADER_SHADING, REVISION_COLUMN_WIDTHS, REVISION_TABLE_WIDTH,
    SPACING_DETAIL, SPACING_ITEM, SPACING_SECTION, SPACING_SUBHEADING,
    SPACING_SUBITEM, SPACING_TITLE,
)
from services.styles import body_run, label_run
from services.text_utils import split_items

logger = logging.getLogger(__name__)

DEFAULT_ASSETS_DIR = Path("attached_assets")

# ---------------------------------------------------------------------------
# Fixed document text
# ---------------------------------------------------------------------------

TYPE_LABELS = {
    UseCaseType.ENTITY: "Gestión de Entidades",
    UseCaseType.API: "API / Web Service",
    UseCaseType.SERVICE: "Servicio / Proceso Automático",
}

DEFAULT_PRECONDITIONS = {
    UseCaseType.ENTITY: "El usuario debe estar autenticado en el sistema y tener los permisos necesarios para acceder a este caso de uso.",
    UseCaseType.API: "El cliente debe tener credenciales válidas de autenticación API y los permisos necesarios para acceder al endpoint.",
    UseCaseType.SERVICE: "El servicio debe estar configurado correctamente con las credenciales y rutas necesarias para su ejecución automática.",
}

DEFAULT_POSTCONDITIONS = {
    UseCaseType.ENTITY: "Los datos de la entidad quedan actualizados en el sistema y se registra la auditoría correspondiente.",
    UseCaseType.API: "La operación se completa exitosamente y se registra en el log de auditoría del sistema.",
    UseCaseType.SERVICE: "El proceso se completa exitosamente y genera los archivos de salida o actualizaciones correspondientes, registrando toda la actividad en el log.",
}

DEFAULT_ERROR_CODES = ("400", "401", "403", "404", "500")

ERROR_DESCRIPTIONS = {
    "400": "Solicitud incorrecta - datos de entrada inválidos",
    "401": "No autorizado - credenciales inválidas o expiradas",
    "403": "Prohibido - sin permisos suficientes para la operación",
    "404": "No encontrado - el recurso solicitado no existe",
    "500": "Error interno del servidor - problema en el procesamiento",
}

SERVICE_ERROR_FLOWS = (
    ("Error en captura de archivos", (
        "El sistema no encuentra archivos en la ruta configurada",
        "Se registra el error y se notifica al administrador",
    )),
    ("Error de conexión con web service", (
        "Falla la conexión con el servicio externo",
        "Se intenta reconectar según política de reintentos",
    )),
    ("Error en procesamiento de datos", (
        "Se detecta inconsistencia en los datos",
        "Se genera reporte de errores y se detiene el proceso",
    )),
)

PATHS_REQUIREMENT = "Las rutas de captura de archivos deben ser configurables"
CREDENTIALS_REQUIREMENT = "El usuario, clave y URL del web service deben ser configurables"
SCHEDULE_REQUIREMENT = "La frecuencia y hora de ejecución deben ser configurables"

REVISION_HEADERS = ("Fecha", "Acción", "Responsable", "Comentario")
REVISION_ACTION = "Versión original"
REVISION_RESPONSIBLE = "Sistema"
REVISION_COMMENT = "Documento generado automáticamente"

WIREFRAME_PLACEHOLDER = "Wireframe no disponible"

# Test-case precondition indentation (twips)
PRECONDITION_INDENT_STEP = 288
LETTER_ITEM_INDENT = 432
ROMAN_ITEM_INDENT = 864


class ListInstances:
    """Hands out list instance ids; every list in a document restarts its numbering."""

    def __init__(self):
        self._ids = itertools.count(1)

    def next(self) -> int:
        return next(self._ids)


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def _roman(n: int) -> str:
    numerals = ((1000, "m"), (900, "cm"), (500, "d"), (400, "cd"), (100, "c"), (90, "xc"),
                (50, "l"), (40, "xl"), (10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i"))
    out = []
    for value, glyph in numerals:
        while n >= value:
            out.append(glyph)
            n -= value
    return "".join(out)


def _letter(index: int) -> str:
    return chr(ord("a") + index)


def section_heading(text: str) -> Paragraph:
    return heading_paragraph(text.upper(), 2, SPACING_SECTION, bordered=True)


def _subheading(text: str) -> Paragraph:
    return heading_paragraph(text, 3, SPACING_SUBHEADING)


def _literal_item(prefix: str, text: str, level: int) -> Paragraph:
    """Hand-prefixed item aligned with numbered siblings at ``level``."""
    return text_paragraph(f"{prefix}. {text}", indent_left=numbering.level_indent(level), spacing=SPACING_SUBITEM)


def _continuation(lines: List[str], level: int) -> List[Paragraph]:
    """Unnumbered lines (payload examples, paths) indented under a list item."""
    return [
        text_paragraph(line, indent_left=numbering.level_indent(level), spacing=SPACING_DETAIL)
        for line in lines
    ]


def _payload_lines(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [line.rstrip() for line in text.split("\n") if line.strip()]


def describe_field(field: EntityField) -> str:
    """``name (type[, length], obligatorio|opcional)[ - description]``; booleans never show a length."""
    parts = [field.type.value]
    if field.length and field.type != FieldType.BOOLEAN:
        parts.append(str(field.length))
    parts.append("obligatorio" if field.mandatory else "opcional")
    text = f"{field.name} ({', '.join(parts)})"
    if field.description and field.description.strip():
        text += f" - {field.description.strip()}"
    return text


def error_description(code: str) -> str:
    return ERROR_DESCRIPTIONS.get(code, f"Error {code} - error en la aplicación")


def precondition_indent(line: str) -> int:
    """Left indent for one line of test-case preconditions, inferred from its leader."""
    stripped = line.strip()
    if re.match(r"^\d+\.", stripped):
        return 0
    if re.match(r"^[a-z]\.", stripped):
        return LETTER_ITEM_INDENT
    if re.match(r"^[ivx]+\.", stripped):
        return ROMAN_ITEM_INDENT
    leading = len(line) - len(line.lstrip())
    return (leading // 3) * PRECONDITION_INDENT_STEP


# ---------------------------------------------------------------------------
# Shared sections
# ---------------------------------------------------------------------------

def _labelled_bullets(rows, lists: ListInstances) -> List[DocumentBlock]:
    instance = lists.next()
    return [
        list_item(numbering.BULLET, 0, instance, [label_run(label), body_run(value)], spacing=SPACING_ITEM)
        for label, value in rows
    ]


def title_block(form: UseCaseForm) -> Paragraph:
    return heading_paragraph(f"{form.use_case_code} {form.use_case_name}".upper(), 1, SPACING_TITLE)


def project_info_section(form: UseCaseForm, lists: ListInstances) -> List[DocumentBlock]:
    rows = (
        ("Cliente", form.client_name),
        ("Proyecto", form.project_name),
        ("Código", form.use_case_code),
        ("Archivo", form.file_name),
    )
    return [section_heading("Información del Proyecto")] + _labelled_bullets(rows, lists)


def description_section(form: UseCaseForm, lists: ListInstances) -> List[DocumentBlock]:
    rows = (
        ("Nombre", form.use_case_name),
        ("Tipo", TYPE_LABELS[form.use_case_type]),
        ("Descripción", form.description),
    )
    return [section_heading("Descripción del Caso de Uso")] + _labelled_bullets(rows, lists)


def _simple_list_section(title: str, items: List[str], lists: ListInstances) -> List[DocumentBlock]:
    if not items:
        return []
    instance = lists.next()
    blocks: List[DocumentBlock] = [section_heading(title)]
    blocks.extend(list_item(numbering.SIMPLE, 0, instance, item, spacing=SPACING_ITEM) for item in items)
    return blocks


def synthesized_requirements(form: UseCaseForm) -> List[str]:
    """Requirements implied by a service's configuration rather than typed by the user."""
    if form.use_case_type != UseCaseType.SERVICE:
        return []
    lines = []
    if form.configuration_paths and form.configuration_paths.strip():
        lines.append(PATHS_REQUIREMENT)
    if form.web_service_credentials and form.web_service_credentials.strip():
        lines.append(CREDENTIALS_REQUIREMENT)
    lines.append(SCHEDULE_REQUIREMENT)
    return lines


def _condition_section(title: str, text: Optional[str], default: str) -> List[DocumentBlock]:
    lines = split_items(text) or [default]
    return [section_heading(title)] + [text_paragraph(line) for line in lines]


def wireframe_section(form: UseCaseForm, assets_dir: Path) -> List[DocumentBlock]:
    """Labelled wireframe images; omitted unless an entity form carries image data."""
    if form.use_case_type != UseCaseType.ENTITY or not form.generate_wireframes:
        return []
    wireframes = form.generated_wireframes
    if wireframes is None:
        return []
    sources = (
        ("Wireframe 1: Interfaz de Búsqueda", wireframes.search_wireframe),
        ("Wireframe 2: Formulario de Gestión", wireframes.form_wireframe),
    )
    resolved = [(label, source, _resolve_image(source, assets_dir)) for label, source in sources]
    if not any(data for _, _, data in resolved):
        logger.info("Wireframes requested but no image data resolved; section omitted")
        return []

    blocks: List[DocumentBlock] = [section_heading("Bocetos Gráficos de Interfaz de Usuario")]
    for label, source, data in resolved:
        if source is None or (isinstance(source, str) and not source.strip()):
            continue
        blocks.append(_subheading(label))
        blocks.append(image_block(data, "wireframe", WIREFRAME_PLACEHOLDER))
    return blocks


def _resolve_image(source: ImageSource, assets_dir: Path) -> Optional[bytes]:
    return resolve_first(image_source_loaders(source, assets_dir))


def test_case_section(form: UseCaseForm, lists: ListInstances) -> List[DocumentBlock]:
    """Objective, preconditions and one bulleted block per step; omitted without steps."""
    if not form.generate_test_case or not form.test_steps:
        return []
    blocks: List[DocumentBlock] = [section_heading("Casos de Prueba")]

    if form.test_case_objective and form.test_case_objective.strip():
        blocks.append(_subheading("Objetivo:"))
        blocks.append(text_paragraph(form.test_case_objective.strip()))

    if form.test_case_preconditions and form.test_case_preconditions.strip():
        blocks.append(_subheading("Precondiciones:"))
        for line in form.test_case_preconditions.split("\n"):
            if line.strip():
                blocks.append(text_paragraph(line.strip(), indent_left=precondition_indent(line),
                                             spacing=SPACING_DETAIL))

    blocks.append(_subheading("Pasos de Prueba:"))
    instance = lists.next()
    for step in form.test_steps:
        blocks.append(list_item(numbering.BULLET, 0, instance, f"Paso {step.number}", spacing=SPACING_ITEM, bold=True))
        details = [
            (label, value.strip())
            for label, value in (
                ("Acción", step.action),
                ("Datos de entrada", step.input_data),
                ("Resultado esperado", step.expected_result),
                ("Observaciones", step.observations),
            )
            if value and value.strip()
        ]
        # Status is always pending at generation time
        details.append(("Estado", "Pendiente"))
        for label, value in details:
            blocks.append(list_item(numbering.BULLET, 1, instance, [label_run(label), body_run(value)],
                                    spacing=SPACING_SUBITEM))
    return blocks


def revision_history(today: date) -> List[DocumentBlock]:
    revision_date = f"{today.day}/{today.month}/{today.year}"
    return [
        section_heading("Historia de Revisiones y Aprobaciones"),
        table(
            rows=[
                list(REVISION_HEADERS),
                [revision_date, REVISION_ACTION, REVISION_RESPONSIBLE, REVISION_COMMENT],
            ],
            column_widths=REVISION_COLUMN_WIDTHS,
            width=REVISION_TABLE_WIDTH,
            border_color=BORDER_GRAY,
            border_size=BORDER_SIZE,
            header_shading=HEADER_SHADING,
        ),
    ]


# ---------------------------------------------------------------------------
# Variant assemblers: main flow + alternative flows
# ---------------------------------------------------------------------------

def assemble_entity_sections(form: UseCaseForm, lists: Optional[ListInstances] = None) -> List[DocumentBlock]:
    lists = lists or ListInstances()
    ml = numbering.MULTILEVEL
    main = lists.next()
    blocks: List[DocumentBlock] = [section_heading("Flujo Principal de Eventos")]

    blocks.append(list_item(ml, 0, main, "Buscar datos de la entidad", spacing=SPACING_ITEM))
    filters = [f for f in form.search_filters if f.strip()]
    columns = [c for c in form.result_columns if c.strip()]
    if filters:
        blocks.append(list_item(ml, 1, main, "Filtros de búsqueda disponibles:", spacing=SPACING_SUBITEM))
        blocks.extend(list_item(ml, 2, main, f.strip(), spacing=SPACING_DETAIL) for f in filters)
    if columns:
        blocks.append(list_item(ml, 1, main, "Columnas del resultado de búsqueda:", spacing=SPACING_SUBITEM))
        blocks.extend(list_item(ml, 2, main, c.strip(), spacing=SPACING_DETAIL) for c in columns)

    blocks.append(list_item(ml, 0, main, "Agregar una nueva entidad", spacing=SPACING_ITEM))
    blocks.extend(list_item(ml, 1, main, describe_field(f), spacing=SPACING_SUBITEM) for f in form.entity_fields)
    blocks.append(list_item(ml, 1, main, "Al agregar se registra automáticamente la fecha y usuario de alta",
                            spacing=SPACING_SUBITEM))

    alt = lists.next()
    blocks.append(section_heading("Flujos Alternativos"))
    blocks.append(list_item(numbering.SIMPLE, 0, alt, "Modificar o actualizar una entidad", spacing=SPACING_ITEM))
    blocks.append(_literal_item("a", "Datos de la entidad a modificar:", 1))
    for i, field in enumerate(form.entity_fields, 1):
        blocks.append(_literal_item(_roman(i), describe_field(field), 2))
    blocks.append(_literal_item("b", "Mostrar el identificador único de la entidad", 1))
    blocks.append(_literal_item("c", "Mostrar la fecha y el usuario de alta originales", 1))
    blocks.append(_literal_item("d", "Al modificar se registra automáticamente la fecha y usuario de modificación", 1))
    blocks.append(list_item(numbering.SIMPLE, 0, alt, "Eliminar una entidad", spacing=SPACING_ITEM))
    blocks.append(_literal_item("a", "Verificar que la entidad no tenga relaciones con otras entidades antes de eliminar", 1))
    return blocks


def assemble_api_sections(form: UseCaseForm, lists: Optional[ListInstances] = None) -> List[DocumentBlock]:
    lists = lists or ListInstances()
    ml = numbering.MULTILEVEL
    main = lists.next()
    method = form.http_method or "POST"
    endpoint = form.api_endpoint or "/api/endpoint"
    blocks: List[DocumentBlock] = [section_heading("Flujo Principal de Eventos")]

    blocks.append(list_item(ml, 0, main, f"El cliente realiza una petición HTTP {method} al endpoint {endpoint}",
                            spacing=SPACING_ITEM))
    request_lines = _payload_lines(form.request_format)
    if request_lines:
        blocks.append(list_item(ml, 1, main, "Formato de solicitud:", spacing=SPACING_SUBITEM))
        blocks.extend(_continuation(request_lines, 2))

    steps = (
        ("El sistema valida los datos de entrada",
         ("Validación de estructura del mensaje", "Validación de datos obligatorios")),
        ("El sistema procesa la solicitud",
         ("Ejecuta la lógica de negocio correspondiente", "Registra la operación en el log de auditoría")),
    )
    for text, subitems in steps:
        blocks.append(list_item(ml, 0, main, text, spacing=SPACING_ITEM))
        blocks.extend(list_item(ml, 1, main, sub, spacing=SPACING_SUBITEM) for sub in subitems)

    blocks.append(list_item(ml, 0, main, "El sistema retorna la respuesta", spacing=SPACING_ITEM))
    response_lines = _payload_lines(form.response_format)
    if response_lines:
        blocks.append(list_item(ml, 1, main, "Formato de respuesta:", spacing=SPACING_SUBITEM))
        blocks.extend(_continuation(response_lines, 2))

    alt = lists.next()
    blocks.append(section_heading("Flujos Alternativos"))
    for code in form.error_codes or DEFAULT_ERROR_CODES:
        blocks.append(list_item(numbering.SIMPLE, 0, alt, f"Código {code}: {error_description(code)}",
                                spacing=SPACING_ITEM))
        explanation = (
            f"El sistema detecta un error de tipo {code}",
            "Se registra el error en el log del sistema",
            f"Se retorna el código de error {code} con el mensaje correspondiente",
        )
        blocks.extend(_literal_item(_letter(i), line, 1) for i, line in enumerate(explanation))
    return blocks


def assemble_service_sections(form: UseCaseForm, lists: Optional[ListInstances] = None) -> List[DocumentBlock]:
    lists = lists or ListInstances()
    ml = numbering.MULTILEVEL
    main = lists.next()
    frequency = form.service_frequency or "Diariamente"
    execution_time = form.execution_time or "02:00 AM"
    blocks: List[DocumentBlock] = [section_heading("Flujo Principal de Eventos")]

    blocks.append(list_item(ml, 0, main, f"El servicio se ejecuta {frequency} a las {execution_time}",
                            spacing=SPACING_ITEM))
    if form.service_frequency:
        blocks.append(list_item(ml, 1, main, f"Frecuencia de ejecución: {form.service_frequency}",
                                spacing=SPACING_SUBITEM))
    if form.execution_time:
        blocks.append(list_item(ml, 1, main, f"Hora programada: {form.execution_time}", spacing=SPACING_SUBITEM))

    blocks.append(list_item(ml, 0, main, "El proceso inicia automáticamente según la programación establecida",
                            spacing=SPACING_ITEM))
    paths = _payload_lines(form.configuration_paths)
    if paths:
        blocks.append(list_item(ml, 1, main, "Captura archivos desde rutas configurables:", spacing=SPACING_SUBITEM))
        blocks.extend(_continuation(paths, 2))
    credentials = _payload_lines(form.web_service_credentials)
    if credentials:
        blocks.append(list_item(ml, 1, main, "Conecta con web services externos:", spacing=SPACING_SUBITEM))
        blocks.extend(_continuation(credentials, 2))

    steps = (
        ("El sistema procesa los datos según las reglas de negocio",
         ("Valida la integridad de los datos", "Aplica las transformaciones necesarias",
          "Registra el progreso en el log de auditoría")),
        ("El proceso genera los resultados y notificaciones",
         ("Genera archivos de salida o actualiza base de datos", "Envía notificaciones de finalización")),
    )
    for text, subitems in steps:
        blocks.append(list_item(ml, 0, main, text, spacing=SPACING_ITEM))
        blocks.extend(list_item(ml, 1, main, sub, spacing=SPACING_SUBITEM) for sub in subitems)

    alt = lists.next()
    blocks.append(section_heading("Flujos Alternativos"))
    for title, explanation in SERVICE_ERROR_FLOWS:
        blocks.append(list_item(numbering.SIMPLE, 0, alt, title, spacing=SPACING_ITEM))
        blocks.extend(_literal_item(_letter(i), line, 1) for i, line in enumerate(explanation))
    return blocks


VariantAssembler = Callable[[UseCaseForm, Optional[ListInstances]], List[DocumentBlock]]

VARIANT_ASSEMBLERS: Dict[UseCaseType, VariantAssembler] = {
    UseCaseType.ENTITY: assemble_entity_sections,
    UseCaseType.API: assemble_api_sections,
    UseCaseType.SERVICE: assemble_service_sections,
}


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------

def assemble_sections(
    form: UseCaseForm,
    assets_dir: Optional[Path] = None,
    today: Optional[date] = None,
) -> List[DocumentBlock]:
    """Ordered body blocks for ``form``.

    Order: title, project info, description, main flow, alternative flows,
    business rules, special requirements, preconditions, postconditions,
    wireframes, test cases, revision history.
    """
    try:
        variant_assembler = VARIANT_ASSEMBLERS[form.use_case_type]
    except KeyError:
        raise ValueError(f"Unknown use case type: {form.use_case_type!r}") from None

    lists = ListInstances()
    blocks: List[DocumentBlock] = [title_block(form)]
    blocks += project_info_section(form, lists)
    blocks += description_section(form, lists)
    blocks += variant_assembler(form, lists)
    blocks += _simple_list_section("Reglas de Negocio", split_items(form.business_rules), lists)
    requirements = synthesized_requirements(form) + split_items(form.special_requirements)
    blocks += _simple_list_section("Requerimientos Especiales", requirements, lists)
    blocks += _condition_section("Precondiciones", form.preconditions, DEFAULT_PRECONDITIONS[form.use_case_type])
    blocks += _condition_section("Postcondiciones", form.postconditions, DEFAULT_POSTCONDITIONS[form.use_case_type])
    blocks += wireframe_section(form, assets_dir or DEFAULT_ASSETS_DIR)
    blocks += test_case_section(form, lists)
    blocks += revision_history(today or date.today())

    logger.info(f"Assembled {len(blocks)} blocks for {form.use_case_type.value} use case {form.use_case_code}")
    return blocks
