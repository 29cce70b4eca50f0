from anthropic import Anthropic
from typing import Optional, Tuple
import logging
import random

from config import settings

logger = logging.getLogger(__name__)

RELAY_SYSTEM_PROMPT = (
    "You are an AI learning mentor for an educational platform focused on skills-based and "
    "inquiry-driven learning. Help students explore concepts deeply, ask probing questions, and "
    "connect ideas across disciplines. Encourage critical thinking and real-world applications."
)

RELAY_FALLBACK_RESPONSES = [
    "That's an interesting question! Let me help you think about this differently. What do you think might be the underlying causes or connections here?",
    "I'd love to explore that concept with you. Can you tell me what you already know about this topic, and what aspects intrigue you most?",
    "Great thinking! This reminds me of similar patterns in other fields. How might this principle apply to real-world situations you've encountered?",
    "Let's dig deeper into this. What questions come to mind when you consider the 'why' behind what you're learning?",
    "That's a valuable insight. How might you test or verify this understanding? What evidence would support or challenge this idea?",
    "I notice you're exploring complex ideas. What connections can you draw between this concept and other subjects you've studied?",
    "Excellent curiosity! Instead of just accepting this information, what critical questions might a researcher ask about this topic?",
]
DEMO_NOTE = " (Note: This is a demo response. For full AI capabilities, configure your Anthropic API key.)"


class RelayChatService:
    """
    Stateless one-shot chat used by the /chat route.

    Calls Claude when an API key is configured, otherwise answers from a
    canned list. The reply is tagged with its source.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        rng: Optional[random.Random] = None
    ):
        self.api_key = settings.ANTHROPIC_API_KEY if api_key is None else api_key
        self.model = model or settings.RELAY_MODEL
        self.rng = rng or random.Random()
        self.client = Anthropic(api_key=self.api_key) if self.api_key else None

    def reply(self, message: str) -> Tuple[str, str]:
        """
        Returns:
            (response text, source) where source is 'anthropic' or 'fallback'
        """
        if self.client is None:
            return self.rng.choice(RELAY_FALLBACK_RESPONSES) + DEMO_NOTE, "fallback"

        logger.info(f"Relaying chat message to {self.model}: {message[:50]}...")
        response = self.client.messages.create(
            model=self.model,
            max_tokens=500,
            temperature=0.7,
            system=RELAY_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": message}],
        )
        return response.content[0].text.strip(), "anthropic"
