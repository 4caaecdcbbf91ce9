"""
Prompt template for quiz question generation.

The whole upstream payload is this single instruction: no system prompt,
no history. The reply must be a bare JSON object so it can be parsed
without any repair step (markdown fences are stripped by the pipeline).
"""

import json

# ===========================  QUESTION GENERATION  ========================= #

QUIZ_PROMPT_TEMPLATE = (
    'Gere UMA única questão de múltipla escolha sobre o assunto "{assunto}", '
    'dentro da matéria de "{materia}", no estilo de prova "{estilo}" e com nível '
    'de dificuldade "{dificuldade}". '
    "A resposta DEVE ser um objeto JSON válido, e NADA MAIS além do JSON. "
    "A estrutura do JSON deve ser exatamente a seguinte: "
    '{{ "question": "o enunciado completo da pergunta", '
    '"options": ["alternativa 1", "alternativa 2", "alternativa 3", "alternativa 4"], '
    '"answer": 0, '
    '"explanation": "uma explicação detalhada e clara da resposta correta." }}. '
    'O campo "answer" deve ser o índice (de 0 a 3) da alternativa correta no '
    'array "options".'
)


def field_text(value) -> str:
    """Render a request value the way it reads in JSON: strings as-is,
    ``true``/``false``/``null``, integral numbers without ``.0``, and
    arrays/objects as compact JSON text."""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def build_prompt(assunto, materia, estilo, dificuldade) -> str:
    """Fill the quiz template with the caller's four fields, unmodified."""
    return QUIZ_PROMPT_TEMPLATE.format(
        assunto=field_text(assunto),
        materia=field_text(materia),
        estilo=field_text(estilo),
        dificuldade=field_text(dificuldade),
    )
