import json
import re
import logging
from typing import Any, Dict, Optional

from agents.base import TextAgent
from config import AI_MODELS, DEFAULT_AI_MODEL
from services.text_utils import clean_generated_text

logger = logging.getLogger(__name__)

# Normalized field name -> rules the model must follow
FIELD_RULES = {
    "clientname": "- Debe ser un nombre de empresa real o banco\n- Primera letra mayúscula\n- Sin abreviaciones innecesarias",
    "projectname": "- Debe describir un sistema o proyecto tecnológico\n- Formato profesional\n- Relacionado con el cliente",
    "usecasecode": "- Formato: 2 letras mayúsculas + 3 números (ej: CL005, AB123)\n- Las letras deben relacionarse con el módulo o área",
    "usecasename": "- OBLIGATORIO: Debe comenzar con verbo en infinitivo (Gestionar, Crear, Consultar, etc.)\n- Describe claramente la funcionalidad\n- Sin artículos innecesarios",
    "filename": "- Formato: 2 letras + 3 números + nombre descriptivo sin espacios\n- Ejemplo: BP005GestionarClientesPremium\n- Sin caracteres especiales",
    "description": "- Explicación clara del alcance del caso de uso\n- Menciona las funcionalidades principales\n- Entre 50-200 palabras\n- Lenguaje técnico pero comprensible",
    "businessrules": "- Una regla por línea\n- Cada regla debe ser específica y verificable\n- Incluir validaciones de datos\n- Mencionar restricciones de seguridad",
    "specialrequirements": "- Requerimientos técnicos específicos\n- Tiempos de respuesta, integraciones\n- Un requerimiento por línea",
    "searchfilter": "- Nombre del campo de búsqueda\n- Debe ser un campo lógico de la entidad\n- Sin tipo de dato",
    "resultcolumn": "- Nombre de columna para mostrar en resultados\n- Información relevante para identificar registros",
    "entityfield": "- Nombre del campo de la entidad\n- Claro y sin abreviaciones\n- Relacionado con el dominio del negocio",
    "apiendpoint": "- URL completa del endpoint\n- Protocolo HTTPS preferido\n- Versionado en la URL (v1, v2)\n- Ejemplo: https://api.banco.com/v1/clientes",
    "requestformat": "- Formato JSON estructurado\n- Incluir campos requeridos y opcionales\n- Especificar tipos de datos",
    "responseformat": "- Formato JSON estructurado\n- Incluir códigos de estado\n- Ejemplos concretos",
}
DEFAULT_RULES = "- Seguir convenciones profesionales\n- Lenguaje claro y preciso\n- Sin errores ortográficos"

# Offered when the field is empty and no provider is used
EXAMPLE_VALUES = {
    "clientname": "Banco Provincia",
    "projectname": "Gestión Integral de Clientes",
    "usecasecode": "CL005",
    "usecasename": "Gestionar Clientes Premium",
    "filename": "BP005GestionarClientesPremium",
    "description": (
        "Este caso de uso permite al operador del área de atención gestionar los datos de clientes del "
        "segmento Premium. Incluye funcionalidades de búsqueda, alta, modificación y eliminación de "
        "clientes, validando condiciones específicas según políticas del banco."
    ),
    "searchfilter": "Número de cliente",
    "resultcolumn": "ID Cliente",
    "entityfield": "numeroCliente",
    "apiendpoint": "https://api.banco.com/v1/clientes",
    "requestformat": '{\n  "numeroCliente": "string",\n  "nombre": "string",\n  "email": "string"\n}',
    "responseformat": '{\n  "success": "boolean",\n  "data": {\n    "id": "number",\n    "cliente": "object"\n  },\n  "status": 200\n}',
}

_NAME_VERBS = ("gestionar", "crear", "consultar", "administrar", "configurar", "procesar")


def normalize_field(field_name: str) -> str:
    return re.sub(r"[^a-z]", "", (field_name or "").lower())


def demo_improvement(field_name: str, value: str) -> str:
    """Deterministic improvement used in demo mode and when every provider fails."""
    key = normalize_field(field_name)
    value = (value or "").strip()
    if not value:
        return EXAMPLE_VALUES.get(key, "")
    if key == "usecasename":
        if not value.lower().startswith(_NAME_VERBS):
            return f"Gestionar {value}"
        return value[0].upper() + value[1:]
    if key == "usecasecode" and not re.fullmatch(r"[A-Z]{2}\d{3}", value):
        return "CL005"
    if key == "filename":
        return re.sub(r"[^a-zA-Z0-9]", "", value)
    return value


class AssistantAgent(TextAgent):
    """Improves a single form field following the field's writing rules."""

    def __init__(self, ai_model: Optional[str] = None):
        model = AI_MODELS.get(ai_model or DEFAULT_AI_MODEL) or AI_MODELS[DEFAULT_AI_MODEL]
        super().__init__(model_id=model["id"])

    async def improve_field(self, field_name: str, current_value: str, context: Optional[Dict[str, Any]] = None) -> str:
        key = normalize_field(field_name)
        if self.model_id is None:
            return demo_improvement(field_name, current_value)

        messages = [
            {"role": "system", "content": f"""Eres un analista funcional que redacta casos de uso en español.
Mejora el valor de un campo de formulario siguiendo estas reglas:
{FIELD_RULES.get(key, DEFAULT_RULES)}

- Corrige cualquier error de formato
- Mantén el significado original si es correcto
- Si está vacío, proporciona un ejemplo apropiado
- Devuelve SOLO el valor mejorado, sin explicaciones, comillas ni markdown"""},
            {"role": "user", "content": f"CAMPO: {field_name}\nVALOR ACTUAL: \"{current_value or ''}\"\nCONTEXTO: {json.dumps(context or {}, ensure_ascii=False)}"},
        ]

        response = await self.generate(messages, max_tokens=600)
        improved = clean_generated_text(response).strip("\"'")
        if not improved:
            logger.info(f"No provider output for field '{field_name}', using demo improvement")
            return demo_improvement(field_name, current_value)
        return improved
