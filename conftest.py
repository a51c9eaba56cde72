import struct
import zlib
from datetime import date

import pytest

from models.use_case import UseCaseForm


def _png(width: int, height: int) -> bytes:
    def chunk(tag: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data) & 0xFFFFFFFF)

    raw = b"".join(b"\x00" + b"\x20\x60\xc0" * width for _ in range(height))
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0))
        + chunk(b"IDAT", zlib.compress(raw))
        + chunk(b"IEND", b"")
    )


@pytest.fixture
def make_png():
    return _png


@pytest.fixture
def today():
    return date(2025, 3, 7)


COMMON = {
    "clientName": "Banco Provincia",
    "projectName": "Gestión Integral de Clientes",
    "useCaseCode": "AB123",
    "useCaseName": "Gestionar Usuarios",
    "fileName": "AB123GestionarUsuarios",
    "description": "Permite buscar, agregar, modificar y eliminar usuarios del sistema.",
}


@pytest.fixture
def entity_data():
    return {
        **COMMON,
        "useCaseType": "entity",
        "searchFilters": ["Número de usuario", "Apellido"],
        "resultColumns": ["ID", "Nombre", "Estado"],
        "entityFields": [
            {"name": "numeroUsuario", "type": "number", "length": 10, "mandatory": True},
            {"name": "nombre", "type": "text", "length": 50, "mandatory": True},
            {"name": "email", "type": "email", "length": 100, "mandatory": False},
            {"name": "activo", "type": "boolean", "length": 1, "mandatory": True},
        ],
        "businessRules": "1. El número de usuario es único\n\n2. El email debe ser válido",
    }


@pytest.fixture
def entity_form(entity_data):
    return UseCaseForm.model_validate(entity_data)


@pytest.fixture
def api_form():
    return UseCaseForm.model_validate({
        **COMMON,
        "useCaseName": "Consultar Saldo",
        "fileName": "AB123ConsultarSaldo",
        "useCaseType": "api",
        "apiEndpoint": "/api/v1/saldos",
        "httpMethod": "get",
        "requestFormat": '{\n  "cuenta": "string"\n}',
        "responseFormat": '{\n  "saldo": 100.5\n}',
    })


@pytest.fixture
def service_form():
    return UseCaseForm.model_validate({
        **COMMON,
        "useCaseName": "Procesar Pagos",
        "fileName": "AB123ProcesarPagos",
        "useCaseType": "service",
        "serviceFrequency": "Diariamente",
    })
