from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from datetime import datetime, timezone
from typing import Optional
from config import settings
from agents.chat_session import ChatSession, create_chat_session
from models.chat import MessageRequest, MessageResponse, RelayChatRequest, RelayChatResponse
from models.feedback import FeedbackRequest
from models.user import LoginRequest, LoginResponse
from schedulers.task_scheduler import TaskScheduler
from services.demo_auth import DemoAuthService
from services.feedback_store import FeedbackStore
from services.local_store import LocalStore, open_store
from services.relay_chat import RelayChatService
import logging

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="EduReform Mentor Core",
    version="0.1.0",
    description="AI mentor chat: provider adapter, question scheduler, session controller and insight log"
)


class Services:
    """Everything the routes need, built once per process"""

    def __init__(
        self,
        tasks: TaskScheduler,
        store: LocalStore,
        auth: DemoAuthService,
        session: ChatSession,
        relay: RelayChatService,
        feedback: FeedbackStore
    ):
        self.tasks = tasks
        self.store = store
        self.auth = auth
        self.session = session
        self.relay = relay
        self.feedback = feedback


def build_services() -> Services:
    tasks = TaskScheduler()
    store = open_store()
    auth = DemoAuthService(store)
    # Clients render the reveal themselves, so the API session does not pace it
    session = create_chat_session(tasks, store, auth=auth, stream_delay_ms=0)
    return Services(
        tasks=tasks,
        store=store,
        auth=auth,
        session=session,
        relay=RelayChatService(),
        feedback=FeedbackStore(),
    )


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services


class MentorModeRequest(BaseModel):
    enabled: bool


class TopicRequest(BaseModel):
    topic: Optional[str] = None


@app.on_event("startup")
async def startup_event():
    """Build services and start the task scheduler"""
    logger.info("Starting EduReform Mentor Core")

    if getattr(app.state, "services", None) is None:
        app.state.services = build_services()

    app.state.services.tasks.start()

    if not app.state.services.session.mentor.client.is_configured:
        logger.warning("GEMINI_API_KEY not set - mentor replies will use fallback responses")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop session timers and the scheduler"""
    logger.info("Shutting down EduReform Mentor Core")
    services = getattr(app.state, "services", None)
    if services is not None:
        services.session.shutdown()
        services.tasks.shutdown()


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "service": "EduReform Mentor Core"
    }


@app.post("/chat", response_model=RelayChatResponse)
def relay_chat(body: RelayChatRequest, request: Request):
    """Stateless one-shot chat

    Returns:
        { "response": str, "source": "anthropic" | "fallback" }
    """
    if not body.message:
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        text, source = get_services(request).relay.reply(body.message)
        return RelayChatResponse(response=text, source=source)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Chat API error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Sorry, I encountered an issue. Please try again.")


@app.post("/feedback")
async def submit_feedback(body: FeedbackRequest, request: Request):
    """Append a feedback record to the feedback file"""
    try:
        get_services(request).feedback.append(body.feedback, body.rating, body.page)
        return {"success": True, "message": "Feedback submitted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Feedback API error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit feedback")


# Mentor chat session endpoints

@app.post("/mentor/open")
async def open_mentor(request: Request):
    session = get_services(request).session
    session.open()
    return {"status": session.widget_state.value}


@app.post("/mentor/close")
async def close_mentor(request: Request):
    session = get_services(request).session
    session.close()
    return {"status": session.widget_state.value}


@app.post("/mentor/clear")
async def clear_mentor(request: Request):
    session = get_services(request).session
    session.clear()
    return {"status": "success", "messages": session.messages}


@app.post("/mentor/message", response_model=MessageResponse)
def send_mentor_message(body: MessageRequest, request: Request):
    """Send a student message to the mentor

    Blocks for the provider call; the reply always comes back, falling back
    to a local response if the provider failed.

    Returns:
        {
            "reply": str or None (None for blank input),
            "messages": [ChatMessage, ...]
        }
    """
    try:
        session = get_services(request).session
        reply = session.submit(body.message)
        return MessageResponse(reply=reply, messages=session.messages)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in mentor message: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/mentor/mode")
async def set_mentor_mode(body: MentorModeRequest, request: Request):
    session = get_services(request).session
    session.toggle_mentor_mode(body.enabled)
    return {"mentorMode": session.mentor_mode}


@app.post("/mentor/topic")
async def set_mentor_topic(body: TopicRequest, request: Request):
    session = get_services(request).session
    session.set_current_topic(body.topic)
    return {"topic": session.current_topic}


@app.get("/mentor/transcript")
async def mentor_transcript(request: Request, format: str = "json"):
    """Current transcript, as messages or as exported plain text (format=text)"""
    session = get_services(request).session
    if format == "text":
        return {"transcript": session.export_chat_history()}
    return {"messages": session.messages}


@app.get("/mentor/stats")
async def mentor_stats(request: Request):
    return get_services(request).session.get_chat_stats()


@app.get("/mentor/insights")
async def mentor_insights(request: Request):
    return {"insights": get_services(request).session.insights.get_insights()}


@app.get("/mentor/status")
async def mentor_status(request: Request):
    """Check session and provider status

    Returns:
        {
            "widget": "open" | "closed",
            "conversation": "idle" | "awaiting_reply" | "streaming_reply",
            "mentor_mode": bool,
            "provider_configured": bool,
            "model": str,
            "queued_questions": int,
            "last_error": str or None
        }
    """
    session = get_services(request).session
    return {
        "widget": session.widget_state.value,
        "conversation": session.state.value,
        "mentor_mode": session.mentor_mode,
        "provider_configured": session.mentor.client.is_configured,
        "model": session.mentor.client.model,
        "queued_questions": len(session.questions.queue),
        "last_error": session.mentor.last_error
    }


# Demo login endpoints

@app.post("/auth/login", response_model=LoginResponse)
async def login(body: LoginRequest, request: Request):
    user = get_services(request).auth.authenticate(body.username, body.password, body.user_type)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return LoginResponse(success=True, user=user)


@app.post("/auth/logout")
async def logout(request: Request):
    get_services(request).auth.logout()
    return {"success": True}


@app.get("/auth/me")
async def current_user(request: Request):
    auth = get_services(request).auth
    return {
        "authenticated": auth.is_authenticated,
        "user": auth.current_user(),
        "profile": auth.user_profile()
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT, log_level="info")
