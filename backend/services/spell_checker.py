"""
Selective Spanish accent correction.

Only fixes common words that often lose their accent when typed into the form
(``descripcion`` -> ``descripción``). Occurrences that sit in a technical
context (abbreviations, codes, camelCase or snake_case identifiers, file
extensions, English API vocabulary) are left alone.
"""

import logging
import re

logger = logging.getLogger(__name__)

ACCENT_CORRECTIONS = {
    # Business / banking
    "descripcion": "descripción",
    "operacion": "operación",
    "informacion": "información",
    "validacion": "validación",
    "autenticacion": "autenticación",
    "autorizacion": "autorización",
    "transaccion": "transacción",
    "configuracion": "configuración",
    "administracion": "administración",
    "gestion": "gestión",
    "creacion": "creación",
    "modificacion": "modificación",
    "eliminacion": "eliminación",
    "integracion": "integración",
    "notificacion": "notificación",
    "verificacion": "verificación",
    "confirmacion": "confirmación",
    "cancelacion": "cancelación",
    "actualizacion": "actualización",
    "revision": "revisión",
    "sesion": "sesión",
    # Scheduling
    "ejecucion": "ejecución",
    "programacion": "programación",
    "planificacion": "planificación",
    # Adjectives
    "automatico": "automático",
    "automatica": "automática",
    "electronico": "electrónico",
    "electronica": "electrónica",
    "publico": "público",
    "publica": "pública",
    "basico": "básico",
    "basica": "básica",
    "logico": "lógico",
    "logica": "lógica",
    "tecnico": "técnico",
    "tecnica": "técnica",
    "practico": "práctico",
    "practica": "práctica",
    # Nouns
    "metodo": "método",
    "codigo": "código",
    "numero": "número",
    "telefono": "teléfono",
    "direccion": "dirección",
    "ubicacion": "ubicación",
    "razon": "razón",
    "organizacion": "organización",
    "institucion": "institución",
    "solucion": "solución",
    "funcion": "función",
    "opcion": "opción",
    "situacion": "situación",
    "condicion": "condición",
    "posicion": "posición",
    "relacion": "relación",
    "aplicacion": "aplicación",
    "comunicacion": "comunicación",
    "presentacion": "presentación",
    "documentacion": "documentación",
    # Banking
    "deposito": "depósito",
    "credito": "crédito",
    "debito": "débito",
    "comision": "comisión",
    "interes": "interés",
    "periodo": "período",
    "prestamo": "préstamo",
    "garantia": "garantía",
}

EXCLUSION_PATTERNS = [
    re.compile(r"\b[A-Z]{2,}\b"),              # CBU, CUIT, DNI, API
    re.compile(r"\b[A-Z]{2}\d{3}\b"),          # ST003, BP001
    re.compile(r"\b\w+\d+\b"),                 # cuenta1, dato1
    re.compile(r"\b\d+\w*\b"),                 # 2FA, 3DES
    re.compile(r"\b(endpoint|token|timestamp|payload|response|request|callback|webhook)\b", re.IGNORECASE),
    re.compile(r"\b(username|password|login|logout|signup|email|url|uri|http|https)\b", re.IGNORECASE),
    re.compile(r"\b(json|xml|html|css|javascript|sql|api|rest|soap|oauth)\b", re.IGNORECASE),
    re.compile(r"\.\w{2,4}\b"),                # .docx, .json
    re.compile(r"\b\w+[A-Z]\w+\b"),            # fechaCreacion
    re.compile(r"\b\w+_\w+\b"),                # snake_case
    re.compile(r"\b\w+-\w+\b"),                # hyphenated
    re.compile(r"\bid\w*\b", re.IGNORECASE),   # id, idCliente
    re.compile(r"\b\w*(Id|ID)\b"),             # clienteId
]

# Characters on each side of a match inspected for technical context
CONTEXT_WINDOW = 20

_WORDS = re.compile(r"\b(" + "|".join(sorted(ACCENT_CORRECTIONS, key=len, reverse=True)) + r")\b", re.IGNORECASE)


def preserve_case(original: str, replacement: str) -> str:
    if original.isupper():
        return replacement.upper()
    if original.islower():
        return replacement.lower()
    if original[0].isupper():
        return replacement[0].upper() + replacement[1:].lower()
    return replacement.lower()


def _in_technical_context(text: str, start: int, end: int) -> bool:
    window = text[max(0, start - CONTEXT_WINDOW):end + CONTEXT_WINDOW]
    return any(pattern.search(window) for pattern in EXCLUSION_PATTERNS)


def contains_technical_terms(text: str) -> bool:
    return any(pattern.search(text) for pattern in EXCLUSION_PATTERNS)


def correct_accents(text):
    """Restore missing accents on common Spanish words, skipping technical contexts."""
    if not text or not isinstance(text, str):
        return text

    def replace(match):
        if _in_technical_context(text, match.start(), match.end()):
            return match.group(0)
        word = match.group(0)
        return preserve_case(word, ACCENT_CORRECTIONS[word.lower()])

    corrected = _WORDS.sub(replace, text)
    if corrected != text:
        logger.debug(f"Accent correction applied: {text[:60]!r} -> {corrected[:60]!r}")
    return corrected


_TEXT_FIELDS = (
    "use_case_name", "description", "business_rules", "special_requirements",
    "preconditions", "postconditions", "test_case_objective", "test_case_preconditions",
)


def correct_form_accents(form):
    """Copy of ``form`` with accents corrected in its user-written text."""
    updates = {name: correct_accents(getattr(form, name)) for name in _TEXT_FIELDS}
    updates["search_filters"] = [correct_accents(f) for f in form.search_filters]
    updates["result_columns"] = [correct_accents(c) for c in form.result_columns]
    updates["entity_fields"] = [
        f.model_copy(update={"name": correct_accents(f.name), "description": correct_accents(f.description)})
        for f in form.entity_fields
    ]
    updates["test_steps"] = [
        s.model_copy(update={
            "action": correct_accents(s.action),
            "input_data": correct_accents(s.input_data),
            "expected_result": correct_accents(s.expected_result),
            "observations": correct_accents(s.observations),
        })
        for s in form.test_steps
    ]
    return form.model_copy(update=updates)
