"""
Simulated scan workflow.

A job moves idle -> running -> complete (or failed). Jobs are kept in an
in-process registry so the scan page can poll progress; nothing here is
durable except the Scan and Log rows written at the end.
"""
import random
import threading
import time
import uuid
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from .. import extensions
from . import ai_service, store

# Static catalog; no request is ever sent to the target site
VULNERABILITY_TEMPLATES = [
    {
        "type": "XSS",
        "severity": "Alta",
        "description": "Vulnerabilidade Cross-Site Scripting (XSS) detectada em formulários de entrada",
    },
    {
        "type": "SQL Injection",
        "severity": "Alta",
        "description": "Possível vulnerabilidade de injeção SQL em parâmetros de consulta",
    },
    {
        "type": "Outdated SSL/TLS",
        "severity": "Média",
        "description": "Versões desatualizadas de SSL/TLS em uso",
    },
    {
        "type": "Cross-Site Request Forgery (CSRF)",
        "severity": "Média",
        "description": "Proteção contra CSRF ausente em formulários críticos",
    },
    {
        "type": "Information Disclosure",
        "severity": "Baixa",
        "description": "Divulgação de informações sensíveis em cabeçalhos HTTP",
    },
    {
        "type": "Insecure Cookies",
        "severity": "Baixa",
        "description": "Cookies sem flags de segurança (HttpOnly, Secure)",
    },
    {
        "type": "Missing HTTP Security Headers",
        "severity": "Baixa",
        "description": "Cabeçalhos de segurança HTTP ausentes (Content-Security-Policy, X-XSS-Protection)",
    },
]

MAX_VULNERABILITIES = 3
PROGRESS_CAP = 95

SCAN_FAILED_MESSAGE = "Ocorreu um erro durante a varredura. Por favor, tente novamente."

IDLE = "idle"
RUNNING = "running"
COMPLETE = "complete"
FAILED = "failed"


def pick_vulnerabilities(rng=random):
    count = rng.randint(0, MAX_VULNERABILITIES)
    # Sampled with replacement, duplicates are possible
    return [dict(rng.choice(VULNERABILITY_TEMPLATES)) for _ in range(count)]


def progress_stage(progress):
    if progress < 30:
        return "Iniciando varredura..."
    if progress < 60:
        return "Analisando a estrutura do site..."
    if progress < 90:
        return "Verificando vulnerabilidades conhecidas..."
    if progress < 100:
        return "Finalizando análise..."
    return "Gerando relatório..."


class ScanJob:
    def __init__(self, site_id, owner_id):
        self.id = uuid.uuid4().hex
        self.site_id = site_id
        self.owner_id = owner_id
        self.state = IDLE
        self.progress = 0
        self.scan_id = None
        self.error = ""
        self.created_at = time.time()
        self.finished_at = None
        self._lock = threading.Lock()

    def start(self):
        with self._lock:
            self.state = RUNNING
            self.progress = 0

    def advance(self, increment):
        with self._lock:
            if self.progress >= PROGRESS_CAP:
                return self.progress
            self.progress = min(self.progress + increment, PROGRESS_CAP)
            return self.progress

    def finish_progress(self):
        with self._lock:
            self.progress = 100

    def complete(self, scan_id):
        with self._lock:
            self.state = COMPLETE
            self.scan_id = scan_id
            self.finished_at = time.time()

    def fail(self, message):
        with self._lock:
            self.state = FAILED
            self.error = message
            self.finished_at = time.time()

    def to_dict(self):
        with self._lock:
            return {
                "id": self.id,
                "siteId": self.site_id,
                "state": self.state,
                "progress": self.progress,
                "stage": progress_stage(self.progress),
                "scanId": self.scan_id,
                "error": self.error,
            }


class ScanJobRegistry:
    def __init__(self):
        self._jobs = {}
        self._lock = threading.Lock()

    def create(self, site_id, owner_id, ttl_sec=600):
        job = ScanJob(site_id, owner_id)
        with self._lock:
            self._prune(ttl_sec)
            self._jobs[job.id] = job
        return job

    def get(self, job_id):
        with self._lock:
            return self._jobs.get(job_id)

    def _prune(self, ttl_sec):
        now = time.time()
        stale = [
            job_id for job_id, job in self._jobs.items()
            if job.finished_at and now - job.finished_at > ttl_sec
        ]
        for job_id in stale:
            del self._jobs[job_id]

    def clear(self):
        with self._lock:
            self._jobs.clear()


jobs = ScanJobRegistry()


class RateLimiter:
    def __init__(self):
        self._events = {}
        self._lock = threading.Lock()

    def hit(self, key, limit, window_sec):
        """Returns (allowed, retry_after_seconds) and records the hit when allowed."""
        now = time.time()
        key = str(key)
        with self._lock:
            events = [t for t in self._events.get(key, []) if now - t < window_sec]
            if len(events) >= limit:
                self._events[key] = events
                return False, int(window_sec - (now - events[0])) + 1
            events.append(now)
            self._events[key] = events
            return True, 0

    def clear(self):
        with self._lock:
            self._events.clear()


rate_limiter = RateLimiter()


def simulate_progress(job, duration, tick, rng=random, sleep=time.sleep):
    deadline = time.monotonic() + duration
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        sleep(min(tick, remaining))
        job.advance(rng.randint(1, 10))
    job.finish_progress()


def run_scan(job, rng=random):
    """
    Runs one attempt to completion inside an app context. The Scan row is only
    written after the report came back, so a failed attempt leaves nothing behind.
    """
    log = current_app.logger
    cfg = current_app.config
    job.start()
    log.info("Scan job %s started for site %s", job.id, job.site_id)

    site = store.get_site(job.site_id)
    if site is None:
        log.warning("Scan job %s: site %s no longer exists", job.id, job.site_id)
        job.fail(SCAN_FAILED_MESSAGE)
        return job

    simulate_progress(job, cfg.get("SCAN_DURATION_SEC", 5), cfg.get("SCAN_TICK_SEC", 1), rng=rng)
    vulnerabilities = pick_vulnerabilities(rng)

    try:
        report = ai_service.generate_vulnerability_report(vulnerabilities, site.url, strict=True)
        scan_id = store.add_scan(site.id, vulnerabilities, report)
    except (ai_service.TextGenerationError, SQLAlchemyError):
        log.exception("Scan job %s failed", job.id)
        extensions.db.session.rollback()
        job.fail(SCAN_FAILED_MESSAGE)
        _record(
            "ERROR",
            f"Falha na varredura de {site.url}: relatório não gerado.",
        )
        return job

    job.complete(scan_id)
    log.info("Scan job %s complete: scan %s with %d vulnerabilities", job.id, scan_id, len(vulnerabilities))
    _record(
        "INFO",
        f"Varredura concluída para {site.url}: {len(vulnerabilities)} vulnerabilidades.",
        scan_id,
    )
    return job


def _record(level, message, scan_id=None):
    # A failed log write never changes the job outcome
    try:
        store.add_log(level, message, scan_id)
    except SQLAlchemyError:
        current_app.logger.exception("Could not write %s log entry", level)
        extensions.db.session.rollback()


def _execute(job, log):
    try:
        run_scan(job)
    except Exception:
        log.exception("Scan job %s crashed", job.id)
        extensions.db.session.rollback()
        job.fail(SCAN_FAILED_MESSAGE)


def _run_in_app(app, job_id):
    with app.app_context():
        job = jobs.get(job_id)
        if job is None:
            return
        _execute(job, app.logger)


def start_scan(site_id, owner_id):
    """Registers a job and runs it on the worker pool, or inline when SCAN_ASYNC is off."""
    cfg = current_app.config
    job = jobs.create(site_id, owner_id, ttl_sec=cfg.get("SCAN_JOB_TTL_SEC", 600))
    pool = extensions.get_executor()
    if cfg.get("SCAN_ASYNC", True) and pool is not None:
        pool.submit(_run_in_app, current_app._get_current_object(), job.id)
    else:
        _execute(job, current_app.logger)
    return job
