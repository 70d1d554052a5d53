"""Stand-in for the AI Horde API for local runs.

    uvicorn dev.fake_horde:app --port 9000
    API_BASE_URL=http://127.0.0.1:9000/api/v2 hordemon watch --api-key dev --interval 30s
"""
import random
import uuid

from fastapi import FastAPI, Header, Response

app = FastAPI()

state = {"kudos": 1000.0, "image": [], "text": []}

@app.get("/api/v2/find_user")
def find_user(apikey: str = Header(default="")):
    if not apikey:
        return Response('{"message": "No API key"}', status_code=401, media_type="application/json")
    state["kudos"] += random.randint(-20, 60)
    if random.random() < 0.4:
        state["image"].append(str(uuid.uuid4()))
    if state["image"] and random.random() < 0.3:
        state["image"].pop(0)
    if random.random() < 0.2:
        state["text"].append(str(uuid.uuid4()))
    if state["text"] and random.random() < 0.3:
        state["text"].pop(0)
    return {
        "username": "dev#1",
        "kudos": state["kudos"],
        "worker_count": 1,
        "account_age": 86400,
        "kudos_details": {"accumulated": state["kudos"], "gifted": 0, "received": 0, "recurring": 0},
        "active_generations": {"image": list(state["image"]), "text": list(state["text"])},
    }

@app.get("/api/v2/generate/status/{gen_id}")
def image_status(gen_id: str):
    return {"done": False, "faulted": False, "queue_position": 3, "wait_time": 12, "kudos": 10, "generations": []}

@app.delete("/api/v2/generate/status/{gen_id}")
def cancel_image(gen_id: str):
    if gen_id in state["image"]:
        state["image"].remove(gen_id)
    return {"done": False, "faulted": False, "generations": []}

@app.get("/api/v2/generate/text/status/{gen_id}")
def text_status(gen_id: str):
    return {
        "done": False,
        "faulted": False,
        "queue_position": 1,
        "wait_time": 20,
        "kudos": 5,
        "generations": [{"worker_name": "dev-worker", "model": "dev-llm", "state": "processing", "text": ""}],
    }

@app.delete("/api/v2/generate/text/status/{gen_id}")
def cancel_text(gen_id: str):
    if gen_id in state["text"]:
        state["text"].remove(gen_id)
    return {"done": False, "faulted": False, "generations": []}
