"""Integração com Loki para envio dos registros de execução via HTTP.

Funções principais:
- send_log_to_loki: envia uma linha de log para o endpoint do Loki
- push_run_record: serializa um registro de execução e envia

O envio é opcional (só quando há URL configurada) e best-effort: falhas são
registradas e nunca alteram o resultado da execução.
"""

import json
import logging
import time

import requests  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

PUSH_PATH = "/loki/api/v1/push"


def _parse_labels(labels) -> dict:
    """Rótulos do stream Loki a partir de ARCHIVER_LOKI_LABELS.

    Aceita ``job=a,env=prod``, a forma de seletor ``{job="a"}`` ou um dict.
    """
    if not labels:
        return {}
    if isinstance(labels, dict):
        return {str(k): str(v) for k, v in labels.items()}
    out = {}
    for item in str(labels).strip().strip("{}").split(","):
        key, sep, value = item.partition("=")
        if sep and key.strip():
            out[key.strip()] = value.strip().strip("\"'")
    return out


def _push_url(url: str) -> str:
    url = url.rstrip("/")
    return url if url.endswith(PUSH_PATH) else url + PUSH_PATH


def send_log_to_loki(url: str, message, labels=None, timestamp=None) -> bool:
    """Envia uma mensagem de log para o Loki.

    Payload no formato aceito por `/loki/api/v1/push`::

        {"streams": [{"stream": {"k": "v"}, "values": [["<unix_nano>", "linha"]]}]}
    """
    if timestamp is None:
        timestamp = str(int(time.time() * 1e9))
    else:
        timestamp = str(timestamp)

    payload = {"streams": [{"stream": _parse_labels(labels), "values": [[timestamp, str(message)]]}]}
    logger.debug("Loki payload: %s", payload)

    try:
        resp = requests.post(_push_url(url), json=payload, headers={"Content-Type": "application/json"}, timeout=5)
        resp.raise_for_status()
        return True
    except requests.RequestException as exc:
        logger.warning("Falha ao enviar log para Loki: %s", exc)
        return False


def push_run_record(url: str, record: dict, labels=None) -> bool:
    """Envia o registro de execução como linha JSON; no-op quando `url` é vazio."""
    if not url:
        return False
    stream = _parse_labels(labels)
    outcome = record.get("outcome")
    if outcome:
        stream["outcome"] = str(outcome)
    return send_log_to_loki(url, json.dumps(record, ensure_ascii=False, default=str), stream)
