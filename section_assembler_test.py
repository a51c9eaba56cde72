import base64

import pytest

from models.document_blocks import Image, Paragraph, Table
from models.use_case import EntityField, FieldType, UseCaseForm
from services import numbering
from services import section_assembler as sa


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def section_titles(blocks):
    return [b.text for b in blocks if isinstance(b, Paragraph) and b.heading == 2]


def section(blocks, title):
    """Blocks between the rank-2 heading ``title`` and the next rank-2 heading."""
    start = None
    for i, block in enumerate(blocks):
        if isinstance(block, Paragraph) and block.heading == 2:
            if start is not None:
                return blocks[start:i]
            if block.text == title:
                start = i + 1
    assert start is not None, f"section {title!r} not found"
    return blocks[start:]


def numbered(blocks, scheme=None, level=None):
    return [
        b for b in blocks
        if isinstance(b, Paragraph) and b.numbering is not None
        and (scheme is None or b.numbering.scheme == scheme)
        and (level is None or b.numbering.level == level)
    ]


def between(blocks, first_text, second_text):
    texts = [getattr(b, "text", None) for b in blocks]
    return blocks[texts.index(first_text) + 1:texts.index(second_text)]


EXPECTED_ORDER = [
    "INFORMACIÓN DEL PROYECTO",
    "DESCRIPCIÓN DEL CASO DE USO",
    "FLUJO PRINCIPAL DE EVENTOS",
    "FLUJOS ALTERNATIVOS",
    "REGLAS DE NEGOCIO",
    "REQUERIMIENTOS ESPECIALES",
    "PRECONDICIONES",
    "POSTCONDICIONES",
    "BOCETOS GRÁFICOS DE INTERFAZ DE USUARIO",
    "CASOS DE PRUEBA",
    "HISTORIA DE REVISIONES Y APROBACIONES",
]


def assert_canonical_order(titles):
    positions = [EXPECTED_ORDER.index(t) for t in titles]
    assert positions == sorted(positions)
    assert len(set(titles)) == len(titles)


# ---------------------------------------------------------------------------
# Shared structure
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("form_fixture", ["entity_form", "api_form", "service_form"])
def test_sections_follow_canonical_order(request, form_fixture, today):
    form = request.getfixturevalue(form_fixture)
    blocks = sa.assemble_sections(form, today=today)

    assert blocks[0].heading == 1
    assert blocks[0].text == f"AB123 {form.use_case_name}".upper()
    assert_canonical_order(section_titles(blocks))


@pytest.mark.parametrize("form_fixture", ["entity_form", "api_form", "service_form"])
def test_revision_table_is_last_and_unique(request, form_fixture, today):
    form = request.getfixturevalue(form_fixture)
    blocks = sa.assemble_sections(form, today=today)

    tables = [b for b in blocks if isinstance(b, Table)]
    assert len(tables) == 1
    assert blocks[-1] is tables[0]
    revision = tables[0]
    assert len(revision.rows) == 2
    assert all(len(row.cells) == 4 for row in revision.rows)
    assert revision.rows[1].cells[0].blocks[0].text == "7/3/2025"
    assert revision.header_row


def test_section_headings_are_bordered_uppercase(entity_form, today):
    blocks = sa.assemble_sections(entity_form, today=today)
    headings = [b for b in blocks if isinstance(b, Paragraph) and b.heading == 2]
    assert headings
    assert all(h.bordered and h.text == h.text.upper() for h in headings)


def test_every_list_gets_its_own_instance(entity_form, today):
    blocks = sa.assemble_sections(entity_form, today=today)
    info = numbered(section(blocks, "INFORMACIÓN DEL PROYECTO"))
    rules = numbered(section(blocks, "REGLAS DE NEGOCIO"))
    main = numbered(section(blocks, "FLUJO PRINCIPAL DE EVENTOS"))
    alt = numbered(section(blocks, "FLUJOS ALTERNATIVOS"))
    instances = [{p.numbering.instance for p in group} for group in (info, rules, main, alt)]
    assert all(len(group) == 1 for group in instances)
    assert len(set.union(*instances)) == 4


def test_numbered_text_never_carries_typed_marker(entity_form, today):
    blocks = sa.assemble_sections(entity_form, today=today)
    rules = numbered(section(blocks, "REGLAS DE NEGOCIO"), numbering.SIMPLE)
    assert [p.text for p in rules] == ["El número de usuario es único", "El email debe ser válido"]


def test_project_info_lines(entity_form, today):
    blocks = section(sa.assemble_sections(entity_form, today=today), "INFORMACIÓN DEL PROYECTO")
    assert [b.text for b in blocks] == [
        "Cliente: Banco Provincia",
        "Proyecto: Gestión Integral de Clientes",
        "Código: AB123",
        "Archivo: AB123GestionarUsuarios",
    ]
    assert all(b.numbering.scheme == numbering.BULLET for b in blocks)


def test_default_conditions_per_variant(api_form, today):
    blocks = sa.assemble_sections(api_form, today=today)
    pre = section(blocks, "PRECONDICIONES")
    post = section(blocks, "POSTCONDICIONES")
    assert [b.text for b in pre] == [sa.DEFAULT_PRECONDITIONS[api_form.use_case_type]]
    assert [b.text for b in post] == [sa.DEFAULT_POSTCONDITIONS[api_form.use_case_type]]


def test_user_conditions_one_paragraph_per_line(entity_data, today):
    entity_data["preconditions"] = "El usuario inició sesión\n\nExisten usuarios cargados"
    form = UseCaseForm.model_validate(entity_data)
    pre = section(sa.assemble_sections(form, today=today), "PRECONDICIONES")
    assert [b.text for b in pre] == ["El usuario inició sesión", "Existen usuarios cargados"]


def test_unknown_variant_rejected(entity_form):
    bogus = entity_form.model_copy(update={"use_case_type": "workflow"})
    with pytest.raises(ValueError):
        sa.assemble_sections(bogus)


# ---------------------------------------------------------------------------
# Entity variant
# ---------------------------------------------------------------------------

def test_entity_search_branch_has_filters_and_columns(entity_form, today):
    main = section(sa.assemble_sections(entity_form, today=today), "FLUJO PRINCIPAL DE EVENTOS")
    search = between(main, "Buscar datos de la entidad", "Agregar una nueva entidad")

    assert [b.text for b in numbered(search, numbering.MULTILEVEL, 1)] == [
        "Filtros de búsqueda disponibles:",
        "Columnas del resultado de búsqueda:",
    ]
    assert [b.text for b in numbered(search, numbering.MULTILEVEL, 2)] == [
        "Número de usuario", "Apellido", "ID", "Nombre", "Estado",
    ]


def test_entity_add_branch_lists_fields_then_audit_once(entity_form, today):
    main = section(sa.assemble_sections(entity_form, today=today), "FLUJO PRINCIPAL DE EVENTOS")
    texts = [b.text for b in main]
    add = main[texts.index("Agregar una nueva entidad") + 1:]

    level1 = numbered(add, numbering.MULTILEVEL, 1)
    assert len(level1) == 5
    audit = [b for b in level1 if "fecha y usuario de alta" in b.text]
    assert len(audit) == 1
    assert level1[-1] is audit[0]
    assert level1[3].text == "activo (boolean, obligatorio)"


def test_entity_without_filters_or_columns_skips_their_labels(entity_data, today):
    entity_data["searchFilters"] = []
    entity_data["resultColumns"] = ["  "]
    form = UseCaseForm.model_validate(entity_data)
    main = section(sa.assemble_sections(form, today=today), "FLUJO PRINCIPAL DE EVENTOS")
    search = between(main, "Buscar datos de la entidad", "Agregar una nueva entidad")
    assert search == []


def test_entity_alternative_flows_list_fields_in_roman(entity_form, today):
    alt = section(sa.assemble_sections(entity_form, today=today), "FLUJOS ALTERNATIVOS")
    top = numbered(alt, numbering.SIMPLE, 0)
    assert [b.text for b in top] == ["Modificar o actualizar una entidad", "Eliminar una entidad"]

    roman = [b for b in alt if b.numbering is None and b.text.split(".")[0] in ("i", "ii", "iii", "iv")]
    assert [b.text for b in roman] == [
        "i. numeroUsuario (number, 10, obligatorio)",
        "ii. nombre (text, 50, obligatorio)",
        "iii. email (email, 100, opcional)",
        "iv. activo (boolean, obligatorio)",
    ]
    assert all(b.indent_left == numbering.level_indent(2) for b in roman)


def test_describe_field_omits_boolean_length():
    field = EntityField(name="habilitado", type=FieldType.BOOLEAN, length=5, mandatory=False)
    assert sa.describe_field(field) == "habilitado (boolean, opcional)"
    assert sa.describe_field(EntityField(name="alta", type="date")) == "alta (date, opcional)"


def test_field_description_follows_in_add_and_modify_branches(entity_data, today):
    entity_data["entityFields"][1]["description"] = "  Nombre completo del usuario "
    form = UseCaseForm.model_validate(entity_data)
    blocks = sa.assemble_sections(form, today=today)

    main = section(blocks, "FLUJO PRINCIPAL DE EVENTOS")
    texts = [b.text for b in main]
    add = numbered(main[texts.index("Agregar una nueva entidad") + 1:], numbering.MULTILEVEL, 1)
    assert add[1].text == "nombre (text, 50, obligatorio) - Nombre completo del usuario"

    alt = [b.text for b in section(blocks, "FLUJOS ALTERNATIVOS")]
    assert "ii. nombre (text, 50, obligatorio) - Nombre completo del usuario" in alt


def test_describe_field_ignores_blank_description():
    field = EntityField(name="codigo", type="text", length=8, description="   ")
    assert sa.describe_field(field) == "codigo (text, 8, opcional)"


# ---------------------------------------------------------------------------
# API variant
# ---------------------------------------------------------------------------

def test_api_default_error_codes(api_form, today):
    alt = section(sa.assemble_sections(api_form, today=today), "FLUJOS ALTERNATIVOS")
    items = numbered(alt, numbering.SIMPLE, 0)
    assert [b.text.split(":")[0] for b in items] == [
        "Código 400", "Código 401", "Código 403", "Código 404", "Código 500",
    ]
    letters = [b.text[:2] for b in alt if b.numbering is None]
    assert letters == ["a.", "b.", "c."] * 5


def test_api_custom_error_code_description(api_form, today):
    form = api_form.model_copy(update={"error_codes": ["409"]})
    alt = section(sa.assemble_sections(form, today=today), "FLUJOS ALTERNATIVOS")
    assert numbered(alt)[0].text == "Código 409: Error 409 - error en la aplicación"


def test_api_payloads_are_unnumbered_continuations(api_form, today):
    main = section(sa.assemble_sections(api_form, today=today), "FLUJO PRINCIPAL DE EVENTOS")
    assert main[0].text == "El cliente realiza una petición HTTP GET al endpoint /api/v1/saldos"

    request_lines = between(main, "Formato de solicitud:", "El sistema valida los datos de entrada")
    assert [b.text for b in request_lines] == ["{", '  "cuenta": "string"', "}"]
    assert all(b.numbering is None and b.indent_left == numbering.level_indent(2) for b in request_lines)


# ---------------------------------------------------------------------------
# Service variant
# ---------------------------------------------------------------------------

def test_service_frequency_only_synthesizes_schedule_line(service_form, today):
    reqs = section(sa.assemble_sections(service_form, today=today), "REQUERIMIENTOS ESPECIALES")
    assert [b.text for b in reqs] == [sa.SCHEDULE_REQUIREMENT]


def test_service_synthesized_requirements_come_first(service_form, today):
    form = service_form.model_copy(update={
        "special_requirements": "Debe finalizar en menos de 5 minutos",
        "configuration_paths": "/data/entrada\n/data/salida",
        "web_service_credentials": "usuario: svc_pagos",
    })
    reqs = section(sa.assemble_sections(form, today=today), "REQUERIMIENTOS ESPECIALES")
    assert [b.text for b in reqs] == [
        sa.PATHS_REQUIREMENT,
        sa.CREDENTIALS_REQUIREMENT,
        sa.SCHEDULE_REQUIREMENT,
        "Debe finalizar en menos de 5 minutos",
    ]


def test_other_variants_without_requirements_omit_section(api_form, today):
    assert "REQUERIMIENTOS ESPECIALES" not in section_titles(sa.assemble_sections(api_form, today=today))


def test_service_alternative_flows(service_form, today):
    alt = section(sa.assemble_sections(service_form, today=today), "FLUJOS ALTERNATIVOS")
    assert len(numbered(alt, numbering.SIMPLE, 0)) == 3


# ---------------------------------------------------------------------------
# Optional sections
# ---------------------------------------------------------------------------

def _steps(n):
    return [
        {"number": i, "action": f"Acción {i}", "inputData": "datos", "expectedResult": "ok"}
        for i in range(1, n + 1)
    ]


def test_test_case_section_needs_steps(entity_data, today):
    entity_data.update({"generateTestCase": True, "testCaseObjective": "Verificar el alta"})
    form = UseCaseForm.model_validate(entity_data)
    assert "CASOS DE PRUEBA" not in section_titles(sa.assemble_sections(form, today=today))


def test_test_case_section_bullets_each_step(entity_data, today):
    entity_data.update({
        "generateTestCase": True,
        "testCaseObjective": "Verificar el alta",
        "testCasePreconditions": "1. Usuario logueado\na. Con permisos\n      detalle",
        "testSteps": _steps(2),
    })
    form = UseCaseForm.model_validate(entity_data)
    blocks = section(sa.assemble_sections(form, today=today), "CASOS DE PRUEBA")

    steps = numbered(blocks, numbering.BULLET, 0)
    assert [b.text for b in steps] == ["Paso 1", "Paso 2"]
    details = numbered(blocks, numbering.BULLET, 1)
    assert len(details) == 8
    assert details[3].text == "Estado: Pendiente"

    indents = [b.indent_left for b in between(blocks, "Precondiciones:", "Pasos de Prueba:")]
    assert indents == [0, sa.LETTER_ITEM_INDENT, 2 * sa.PRECONDITION_INDENT_STEP]


def test_test_case_step_skips_empty_fields(entity_data, today):
    entity_data.update({
        "generateTestCase": True,
        "testCaseObjective": "Verificar el alta",
        "testSteps": [{"number": 1, "action": "Ingresar", "observations": "  "}],
    })
    form = UseCaseForm.model_validate(entity_data)
    blocks = section(sa.assemble_sections(form, today=today), "CASOS DE PRUEBA")
    details = [b.text for b in numbered(blocks, numbering.BULLET, 1)]
    assert details == ["Acción: Ingresar", "Estado: Pendiente"]


@pytest.mark.parametrize("line, indent", [
    ("1. Usuario logueado", 0),
    ("a. Con permisos", sa.LETTER_ITEM_INDENT),
    ("i. Primero", sa.LETTER_ITEM_INDENT),
    ("ii. Detalle", sa.ROMAN_ITEM_INDENT),
    ("   iv. Cuarto", sa.ROMAN_ITEM_INDENT),
    ("      detalle", 2 * sa.PRECONDITION_INDENT_STEP),
    ("\t\t\tdetalle", sa.PRECONDITION_INDENT_STEP),
    ("sin sangria", 0),
])
def test_precondition_indent(line, indent):
    assert sa.precondition_indent(line) == indent


def test_wireframes_embedded_for_entity(entity_data, today, make_png):
    png = make_png(40, 30)
    entity_data.update({
        "generateWireframes": True,
        "generatedWireframes": {
            "searchWireframe": "data:image/png;base64," + base64.b64encode(png).decode(),
            "formWireframe": png,
        },
    })
    form = UseCaseForm.model_validate(entity_data)
    blocks = section(sa.assemble_sections(form, today=today), "BOCETOS GRÁFICOS DE INTERFAZ DE USUARIO")
    assert [b.text for b in blocks if isinstance(b, Paragraph)] == [
        "Wireframe 1: Interfaz de Búsqueda",
        "Wireframe 2: Formulario de Gestión",
    ]
    assert sum(isinstance(b, Image) for b in blocks) == 2


def test_unresolvable_wireframe_gets_placeholder(entity_data, today, make_png, tmp_path):
    entity_data.update({
        "generateWireframes": True,
        "generatedWireframes": {"searchWireframe": make_png(10, 10), "formWireframe": "missing.png"},
    })
    form = UseCaseForm.model_validate(entity_data)
    blocks = section(sa.assemble_sections(form, assets_dir=tmp_path, today=today),
                     "BOCETOS GRÁFICOS DE INTERFAZ DE USUARIO")
    assert isinstance(blocks[1], Image)
    assert blocks[3].text == f"[{sa.WIREFRAME_PLACEHOLDER}]"


def test_wireframes_without_data_omit_section(entity_data, today, tmp_path):
    entity_data.update({"generateWireframes": True, "generatedWireframes": {"searchWireframe": "nada.png"}})
    form = UseCaseForm.model_validate(entity_data)
    titles = section_titles(sa.assemble_sections(form, assets_dir=tmp_path, today=today))
    assert "BOCETOS GRÁFICOS DE INTERFAZ DE USUARIO" not in titles


def test_wireframes_ignored_for_api(api_form, today, make_png):
    form = UseCaseForm.model_validate({
        **api_form.model_dump(),
        "generate_wireframes": True,
        "generated_wireframes": {"search_wireframe": make_png(10, 10)},
    })
    assert "BOCETOS GRÁFICOS DE INTERFAZ DE USUARIO" not in section_titles(sa.assemble_sections(form, today=today))
