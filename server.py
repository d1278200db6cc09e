#!/usr/bin/env python3
"""PageSmith - HTTP and server-sent-events surface for the site pipeline."""

import os
import threading
import time
import uuid

from flask import Flask, Response, jsonify, request, stream_with_context

from config.defaults import DEFAULTS
from core.orchestrator import Orchestrator
from core.state import GenerationRequest, Phase, PipelineState
from core.store import DirectoryStore

app = Flask(__name__)
orchestrator = Orchestrator()
store = DirectoryStore()

# Runs keyed by run_id: {id: {"state": ..., "stream": ..., "result": ..., "created": timestamp}}
_jobs = {}
_jobs_lock = threading.Lock()
_MAX_JOBS = 50  # prevent unbounded memory growth
_JOB_TTL = 3600  # expire runs after 1 hour


def _cleanup_jobs():
    """Remove expired runs. Called under _jobs_lock."""
    now = time.time()
    expired = [jid for jid, job in _jobs.items() if now - job["created"] > _JOB_TTL]
    for jid in expired:
        del _jobs[jid]
    # If still over limit, remove oldest
    if len(_jobs) > _MAX_JOBS:
        by_age = sorted(_jobs.items(), key=lambda x: x[1]["created"])
        for jid, _ in by_age[:len(_jobs) - _MAX_JOBS]:
            del _jobs[jid]


def _store_job(state, stream=None, result=None):
    """Register a run and return its ID."""
    run_id = str(uuid.uuid4())[:8]
    with _jobs_lock:
        _cleanup_jobs()
        _jobs[run_id] = {"state": state, "stream": stream, "result": result, "created": time.time()}
    return run_id


def _get_job(run_id):
    """Get a run record, or None if not found/expired."""
    with _jobs_lock:
        job = _jobs.get(run_id)
    if not job:
        return None
    if time.time() - job["created"] > _JOB_TTL:
        with _jobs_lock:
            _jobs.pop(run_id, None)
        return None
    return job


def _job_result(job):
    stream = job["stream"]
    if job["result"] is None and stream is not None and stream.finished:
        job["result"] = stream.result
    return job["result"]


def _parse_request(data):
    """Build a GenerationRequest from JSON or query args, or None if the prompt is empty."""
    prompt = (data.get("prompt") or "").strip()
    if not prompt:
        return None
    name = (data.get("name") or "").strip() or "My Site"
    return GenerationRequest(prompt=prompt, project_name=name)


def _store_for(data):
    save = data.get("save", True)
    if isinstance(save, str):
        save = save.lower() not in ("0", "false", "no")
    return store if save else None


@app.route("/api/generate", methods=["POST"])
def api_generate():
    """Run the whole pipeline and return the result as JSON."""
    data = request.get_json(silent=True) or {}
    gen_request = _parse_request(data)
    if gen_request is None:
        return jsonify({"error": "Missing prompt"}), 400

    state = PipelineState(gen_request)
    result = orchestrator.run(gen_request, store=_store_for(data), state=state)

    payload = result.to_dict()
    payload["runId"] = _store_job(state, result=result)
    return jsonify(payload)


@app.route("/api/generate/stream")
def api_generate_stream():
    """Run the pipeline and stream its progress events as SSE."""
    gen_request = _parse_request(request.args)
    if gen_request is None:
        return jsonify({"error": "Missing prompt"}), 400

    stream = orchestrator.stream(gen_request, store=_store_for(request.args))
    run_id = _store_job(stream.state, stream=stream)
    keepalive = DEFAULTS["stream_keepalive_seconds"]

    def generate():
        completed = False
        try:
            for event in stream.events(keepalive=keepalive):
                if event is None:
                    yield ": ping\n\n"
                else:
                    yield event.to_sse()
            completed = True
        finally:
            # Client went away: the run finishes on its own and is still saved
            if not completed:
                stream.detach()

    response = Response(stream_with_context(generate()), mimetype="text/event-stream")
    response.headers["Cache-Control"] = "no-cache"
    response.headers["X-Accel-Buffering"] = "no"
    response.headers["X-Run-Id"] = run_id
    return response


@app.route("/api/runs/<run_id>/cancel", methods=["POST"])
def api_cancel(run_id):
    job = _get_job(run_id)
    if not job:
        return jsonify({"error": "Run not found"}), 404
    stream = job["stream"]
    if stream is None or stream.finished:
        return jsonify({"error": "Run already finished"}), 400
    stream.cancel()
    return jsonify({"runId": run_id, "cancelling": True})


@app.route("/api/runs/<run_id>/retry", methods=["POST"])
def api_retry(run_id):
    """Re-run a failed run from detecting."""
    job = _get_job(run_id)
    if not job:
        return jsonify({"error": "Run not found"}), 404
    state = job["state"]
    if state.phase != Phase.ERROR:
        return jsonify({"error": "Only failed runs can be retried"}), 400

    data = request.get_json(silent=True) or {}
    result = orchestrator.run(state.request, store=_store_for(data), state=state)
    job["result"] = result
    job["stream"] = None

    payload = result.to_dict()
    payload["runId"] = run_id
    return jsonify(payload)


@app.route("/api/runs/<run_id>")
def api_run_status(run_id):
    job = _get_job(run_id)
    if not job:
        return jsonify({"error": "Run not found"}), 404

    state = job["state"]
    result = _job_result(job)
    return jsonify({
        "runId": run_id,
        "phase": state.phase.value,
        "plan": state.plan.to_dict() if state.plan else None,
        "warnings": list(state.warnings),
        "errors": list(state.errors),
        "result": result.to_dict() if result else None,
    })


@app.route("/api/plan", methods=["POST"])
def api_plan():
    """Detector only: show the plan without any generation calls."""
    data = request.get_json(silent=True) or {}
    prompt = (data.get("prompt") or "").strip()
    if not prompt:
        return jsonify({"error": "Missing prompt"}), 400
    plan = orchestrator.detect(prompt)
    payload = plan.to_dict()
    payload["dryRun"] = True
    return jsonify(payload)


@app.route("/api/history")
def api_history():
    return jsonify(store.history())


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    print(f"PageSmith running at http://localhost:{port}")
    app.run(debug=False, port=port, threaded=True)
