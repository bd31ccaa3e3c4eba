import json
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen
from flask import current_app

TEMPERATURE = 0.7

URL_ANALYSIS_PROMPT = (
    "Você é um especialista em segurança da informação. Analise o URL fornecido e "
    "identifique potenciais vulnerabilidades conhecidas ou riscos associados. Forneça "
    "uma descrição resumida em português dos riscos potenciais (máximo 150 palavras)."
)
REPORT_PROMPT = (
    "Você é um especialista em segurança da informação que escreve relatórios detalhados "
    "sobre vulnerabilidades encontradas em sites. Forneça um relatório estruturado e "
    "detalhado em português sobre as vulnerabilidades detectadas, incluindo recomendações "
    "específicas para mitigação."
)
LOG_ANALYSIS_PROMPT = (
    "Você é um especialista em segurança da informação especializado em análise de logs. "
    "Analise os logs fornecidos e identifique padrões suspeitos ou indicadores de possíveis "
    "incidentes de segurança. Forneça um resumo em português dos achados."
)

URL_EMPTY = "Não foi possível analisar o URL."
URL_FAILED = "Ocorreu um erro ao analisar o URL. Tente novamente mais tarde."
REPORT_EMPTY = "Não foi possível gerar o relatório."
REPORT_FAILED = "Ocorreu um erro ao gerar o relatório. Tente novamente mais tarde."
LOGS_EMPTY = "Não foi possível analisar os logs."
LOGS_FAILED = "Ocorreu um erro ao analisar os logs. Tente novamente mais tarde."


class TextGenerationError(Exception):
    pass


def _chat_completion(system_prompt, user_prompt, max_tokens):
    """Returns the completion text ("" when the model sent nothing) or raises TextGenerationError."""
    cfg = current_app.config
    api_key = cfg.get("OPENAI_API_KEY")
    if not api_key:
        raise TextGenerationError("OPENAI_API_KEY is not configured")

    body = json.dumps({
        "model": cfg.get("OPENAI_MODEL", "gpt-4"),
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": TEMPERATURE,
        "max_tokens": max_tokens,
    }).encode("utf-8")

    req = Request(
        f"{cfg.get('OPENAI_BASE_URL', 'https://api.openai.com/v1')}/chat/completions",
        data=body,
        method="POST",
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "User-Agent": "ScaneIA/1.0",
        },
    )
    try:
        with urlopen(req, timeout=cfg.get("OPENAI_TIMEOUT", 30)) as response:
            payload = json.loads(response.read().decode("utf-8"))
    except (URLError, HTTPError, TimeoutError, ConnectionError, HTTPException, ValueError) as exc:
        raise TextGenerationError(str(exc)) from exc

    try:
        content = payload["choices"][0]["message"].get("content")
        if content is not None and not isinstance(content, str):
            raise TypeError(f"content is {type(content).__name__}")
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise TextGenerationError("malformed completion response") from exc
    return (content or "").strip()


def _generate(system_prompt, user_prompt, max_tokens, empty_text, failed_text, strict, what):
    try:
        return _chat_completion(system_prompt, user_prompt, max_tokens) or empty_text
    except TextGenerationError:
        current_app.logger.exception("Text generation failed (%s)", what)
        if strict:
            raise
        return failed_text


def analyze_url(url, strict=False):
    return _generate(
        URL_ANALYSIS_PROMPT,
        f"Analise este URL: {url}",
        300,
        URL_EMPTY,
        URL_FAILED,
        strict,
        "url analysis",
    )


def generate_vulnerability_report(vulnerabilities, url, strict=False):
    vulnerabilities_text = json.dumps(list(vulnerabilities), ensure_ascii=False)
    return _generate(
        REPORT_PROMPT,
        f"Estas são as vulnerabilidades encontradas no site {url}:\n{vulnerabilities_text}\n\n"
        "Gere um relatório detalhado com recomendações de mitigação.",
        1000,
        REPORT_EMPTY,
        REPORT_FAILED,
        strict,
        "vulnerability report",
    )


def analyze_logs(logs, strict=False):
    logs_text = json.dumps(list(logs), ensure_ascii=False)
    return _generate(
        LOG_ANALYSIS_PROMPT,
        f"Analise estes logs:\n{logs_text}",
        500,
        LOGS_EMPTY,
        LOGS_FAILED,
        strict,
        "log analysis",
    )
