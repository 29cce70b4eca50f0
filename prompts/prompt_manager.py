import yaml
import os
import json
from pathlib import Path
from typing import Dict, Any, List, Optional
from models.chat import ChatMessage, Sender
import logging

logger = logging.getLogger(__name__)


class PromptManager:
    """
    Manages prompt templates with hot-reload support

    Loads prompts from YAML files and provides methods to build
    prompts with dynamic context injection.
    """

    def __init__(self, prompts_dir: Optional[str] = None):
        if prompts_dir is None:
            # Default to prompts/ directory in the same location as this file
            prompts_dir = Path(__file__).parent

        self.prompts_dir = Path(prompts_dir)
        self.cache: Dict[str, Dict[str, Any]] = {}
        logger.info(f"PromptManager initialized with directory: {self.prompts_dir}")

    def get_prompt_config(self, prompt_name: str) -> Dict[str, Any]:
        """
        Load prompt configuration from YAML file with hot-reload support

        Args:
            prompt_name: Name of the prompt file (without .yaml extension)

        Returns:
            Dictionary containing the prompt configuration
        """
        filepath = self.prompts_dir / f"{prompt_name}.yaml"

        if not filepath.exists():
            raise FileNotFoundError(f"Prompt file not found: {filepath}")

        # Get file modification time for hot-reload
        mtime = os.path.getmtime(filepath)

        cache_key = prompt_name

        # Check if we need to reload (file changed or not in cache)
        if cache_key not in self.cache or self.cache[cache_key].get('mtime') != mtime:
            logger.info(f"Loading/reloading prompt: {prompt_name}")
            with open(filepath, 'r') as f:
                config = yaml.safe_load(f)

            self.cache[cache_key] = {
                'data': config,
                'mtime': mtime
            }

        return self.cache[cache_key]['data']

    def build_mentor_chat_prompt(
        self,
        message: str,
        conversation_history: List[ChatMessage],
        user_profile: Optional[Dict[str, Any]] = None,
        current_topic: Optional[str] = None,
        max_history: int = 6
    ) -> str:
        """
        Build the mentor chat prompt using the YAML configuration

        Layout: system role, student profile, the most recent
        `max_history` turns, current topic, then the student's message
        followed by the assistant cue.

        Args:
            message: User's current message
            conversation_history: Previous turns, oldest first
            user_profile: Profile serialized as JSON into the prompt
            current_topic: Optional topic the student is exploring
            max_history: Sliding window size over conversation_history

        Returns:
            Complete prompt string ready for the provider
        """
        config = self.get_prompt_config("mentor_chat")

        prompt = config['system_role'] + "\n\n"

        if user_profile:
            prompt += f"{config['profile_header']} {json.dumps(user_profile)}\n\n"

        recent = self.recent_window(conversation_history, max_history)
        if recent:
            prompt += self._build_conversation_history(recent, config['conversation_history'])
            prompt += "\n"

        if current_topic:
            prompt += f"{config['topic_header']} {current_topic}\n\n"

        prompt += f"{config['message_label']}: {message}\n\n{config['assistant_cue']}"

        return prompt

    def build_analysis_prompt(self, response: str, context: str) -> str:
        """Build the structured-analysis prompt for a student response"""
        config = self.get_prompt_config("response_analysis")
        return config['template'].format(response=response, context=context)

    def build_question_prompt(self) -> str:
        """Build the prompt asking for personalized probing questions"""
        return self.get_prompt_config("mentor_questions")['template']

    @staticmethod
    def recent_window(history: List[ChatMessage], max_items: int) -> List[ChatMessage]:
        """Most recent max_items turns, oldest first"""
        if max_items <= 0:
            return []
        return list(history[-max_items:])

    def _build_conversation_history(self, history: List[ChatMessage], config: Dict) -> str:
        """Build conversation history section"""
        header = config.get('header', 'Recent Conversation:')
        user_label = config.get('user_label', 'Student')
        assistant_label = config.get('assistant_label', 'Mentor')

        lines = [header]
        for msg in history:
            role_label = user_label if msg.sender == Sender.USER else assistant_label
            lines.append(f"{role_label}: {msg.text}")

        return "\n".join(lines) + "\n"
