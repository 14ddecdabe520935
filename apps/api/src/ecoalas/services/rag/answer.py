from __future__ import annotations

from collections import OrderedDict
import logging
from threading import Lock

from ecoalas.llm import VALID_MODELS, LLMClient, LLMClientError, LLMErrorKind

logger = logging.getLogger(__name__)

STRICT_MIN_CONTEXT = 200
FALLBACK_MIN_CONTEXT = 300
FALLBACK_CONTEXT_CHARS = 800
MIN_CACHEABLE_ANSWER = 50
STRICT_TEMPERATURE = 0.3
PERMISSIVE_TEMPERATURE = 0.6
TOP_P = 0.85

CONFIGURATION_ERROR_MESSAGE = (
    "**Error de configuración del chatbot**\n\n"
    "El servicio de IA no está configurado correctamente. "
    "Verifica la variable GROQ_API_KEY."
)
INSUFFICIENT_CONTEXT_MESSAGE = (
    "No encontré información específica sobre tu pregunta en los documentos cargados. Puedes:\n\n"
    "- Intentar con el modo investigativo (strict=false)\n"
    "- Verificar que los documentos contengan información relacionada\n"
    "- Reformular tu pregunta"
)
EMPTY_ANSWER_MESSAGE = "No pude generar una respuesta en este momento."
UNAUTHORIZED_MESSAGE = (
    "**Error de autenticación**\n\n"
    "La API key de Groq no es válida o ha expirado.\n\n"
    "1. Genera una nueva API key en https://console.groq.com/keys\n"
    "2. Actualiza GROQ_API_KEY\n"
    "3. Reinicia el servidor"
)
RATE_LIMITED_MESSAGE = (
    "**Límite de solicitudes excedido**\n\n"
    "Se superó el límite de solicitudes de Groq. "
    "Espera unos minutos e intenta nuevamente."
)

STRICT_PROMPT = """Eres un asistente especializado en aves de Colombia. Responde ÚNICAMENTE con la información proporcionada.

CONTEXTO:
{context}

PREGUNTA: {question}

Responde solo con la información del contexto. Si no hay información suficiente, indica claramente qué falta."""

PERMISSIVE_PROMPT = """Eres un ornitólogo experto en aves de Colombia. Combina la información del contexto con tu conocimiento.

CONTEXTO:
{context}

PREGUNTA: {question}

Usa principalmente la información del contexto y complementa con conocimiento general cuando sea útil."""


def unknown_model_message(model: str) -> str:
    choices = "\n".join(f"- {name}" for name in VALID_MODELS)
    return (
        "**Error: modelo no disponible**\n\n"
        f'El modelo "{model}" no existe o fue retirado en Groq.\n\n'
        f"Actualiza GROQ_MODEL a uno de estos:\n\n{choices}\n\n"
        "y reinicia el servidor."
    )


def degraded_answer(context: str) -> str:
    return (
        "**Información encontrada en documentos:**\n\n"
        f"{context[:FALLBACK_CONTEXT_CHARS]}...\n\n"
        "*No pude generar una respuesta completa debido a un error con el servicio de IA.*"
    )


def generic_error_message(detail: str) -> str:
    return (
        "**Error con el servicio de IA**\n\n"
        f"Detalles: {detail}\n\n"
        "Verifica la configuración o intenta nuevamente más tarde."
    )


def build_prompt(question: str, context: str, *, strict: bool) -> str:
    template = STRICT_PROMPT if strict else PERMISSIVE_PROMPT
    return template.format(context=context, question=question)


class AnswerCache:
    """Thread-safe LRU map of (normalized question, strict) to answer text."""

    def __init__(self, max_entries: int = 512) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be > 0")
        self._max_entries = max_entries
        self._entries: OrderedDict[tuple[str, bool], str] = OrderedDict()
        self._lock = Lock()

    @staticmethod
    def key(question: str, strict: bool) -> tuple[str, bool]:
        return question.strip().lower(), strict

    def get(self, question: str, strict: bool) -> str | None:
        key = self.key(question, strict)
        with self._lock:
            answer = self._entries.get(key)
            if answer is not None:
                self._entries.move_to_end(key)
            return answer

    def put(self, question: str, strict: bool, answer: str) -> None:
        key = self.key(question, strict)
        with self._lock:
            self._entries[key] = answer
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class AnswerComposer:
    def __init__(
        self,
        *,
        llm_client: LLMClient | None,
        model: str,
        cache: AnswerCache,
        max_tokens: int = 1200,
    ) -> None:
        self._llm_client = llm_client
        self._model = model
        self._cache = cache
        self._max_tokens = max_tokens

    def answer(self, question: str, context: str = "", *, strict: bool = True) -> str:
        cached = self._cache.get(question, strict)
        if cached is not None:
            logger.info("Answer served from cache")
            return cached

        if self._llm_client is None:
            return CONFIGURATION_ERROR_MESSAGE

        context = context or ""
        if strict and len(context) <= STRICT_MIN_CONTEXT:
            return INSUFFICIENT_CONTEXT_MESSAGE

        logger.info("Generating answer model=%s strict=%s context_chars=%d", self._model, strict, len(context))
        try:
            generated = self._llm_client.complete(
                messages=[{"role": "user", "content": build_prompt(question, context, strict=strict)}],
                model=self._model,
                temperature=STRICT_TEMPERATURE if strict else PERMISSIVE_TEMPERATURE,
                max_tokens=self._max_tokens,
                top_p=TOP_P,
            )
        except LLMClientError as exc:
            logger.error("Generation failed model=%s kind=%s: %s", self._model, exc.kind.value, exc)
            return self._failure_message(exc, context)

        answer = (generated or "").strip() or EMPTY_ANSWER_MESSAGE
        if len(answer) > MIN_CACHEABLE_ANSWER:
            self._cache.put(question, strict, answer)
        return answer

    def _failure_message(self, exc: LLMClientError, context: str) -> str:
        if exc.kind is LLMErrorKind.UNKNOWN_MODEL:
            return unknown_model_message(self._model)
        if exc.kind is LLMErrorKind.UNAUTHORIZED:
            return UNAUTHORIZED_MESSAGE
        if exc.kind is LLMErrorKind.RATE_LIMITED:
            return RATE_LIMITED_MESSAGE
        if len(context) > FALLBACK_MIN_CONTEXT:
            return degraded_answer(context)
        return generic_error_message(str(exc))
