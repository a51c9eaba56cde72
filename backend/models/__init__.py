from models.use_case import (
    UseCaseType, FieldType, EntityField, TestStep, GeneratedWireframes,
    UseCaseForm, UseCaseRecord, UseCaseUpdate, GenerateDocxRequest
)
from models.document_blocks import (
    StyledRun, NumberingRef, Paragraph, Image, TableCell, TableRow, Table,
    DocumentBlock, DocumentParts
)
from models.assist import AIAssistRequest, AIAssistResponse, WireframeRenderRequest, WireframeRenderResponse
