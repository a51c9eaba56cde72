import pytest
from pydantic import ValidationError

from models import GenerateDocxRequest, UseCaseForm, UseCaseType, WireframeRenderRequest


def test_camel_and_snake_case_are_both_accepted(entity_data):
    camel = UseCaseForm.model_validate(entity_data)
    snake = UseCaseForm.model_validate(camel.model_dump())
    assert snake == camel
    assert camel.use_case_type == UseCaseType.ENTITY
    assert camel.entity_fields[3].length == 1


@pytest.mark.parametrize("name", ["Usuarios", "Gestión de usuarios", "El alta de clientes"])
def test_use_case_name_must_start_with_infinitive(entity_data, name):
    entity_data["useCaseName"] = name
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


@pytest.mark.parametrize("file_name", ["ab123Gestionar", "AB12Gestionar", "AB123", "ABC123Gestionar"])
def test_file_name_format(entity_data, file_name):
    entity_data["fileName"] = file_name
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_entity_needs_fields(entity_data):
    entity_data["entityFields"] = []
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_field_length_must_be_positive(entity_data):
    entity_data["entityFields"][0]["length"] = 0
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_unknown_field_type(entity_data):
    entity_data["entityFields"][0]["type"] = "blob"
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_missing_type_is_rejected(entity_data):
    del entity_data["useCaseType"]
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_http_method_normalized(api_form):
    assert api_form.http_method == "GET"


def test_http_method_must_be_known(api_form):
    data = api_form.model_dump()
    data["http_method"] = "fetch"
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(data)


def test_error_codes(api_form):
    data = api_form.model_dump()
    data["error_codes"] = [" 409 ", "", "422"]
    assert UseCaseForm.model_validate(data).error_codes == ["409", "422"]

    data["error_codes"] = ["  "]
    assert UseCaseForm.model_validate(data).error_codes is None

    data["error_codes"] = ["999"]
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(data)


def test_test_steps_must_be_sequential(entity_data):
    entity_data["testSteps"] = [{"number": 1, "action": "a"}, {"number": 3, "action": "b"}]
    with pytest.raises(ValidationError):
        UseCaseForm.model_validate(entity_data)


def test_test_step_status_defaults_to_pending(entity_data):
    entity_data["testSteps"] = [{"number": 1, "action": "Ingresar"}]
    form = UseCaseForm.model_validate(entity_data)
    assert form.test_steps[0].status == "Pendiente"


def test_generate_docx_request(entity_data):
    request = GenerateDocxRequest.model_validate({"formData": entity_data, "fileName": "AB123Test"})
    assert request.form_data.file_name == "AB123GestionarUsuarios"
    assert request.file_name == "AB123Test"


def test_wireframe_render_bounds():
    with pytest.raises(ValidationError):
        WireframeRenderRequest(html="<div></div>", width=5000)
    assert WireframeRenderRequest(html="<div></div>", kind="search").height is None
