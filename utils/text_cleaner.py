from typing import Iterable


class TextCleaner:
    @staticmethod
    def strip_code_fences(text: str) -> str:
        """Remove a surrounding ```json ... ``` block if the model added one"""
        content = text.strip()
        if content.startswith("```"):
            lines = content.split("\n")
            content = "\n".join(lines[1:-1]) if len(lines) > 2 else content
            content = content.replace("```json", "").replace("```", "").strip()
        return content

    @staticmethod
    def contains_any(text: str, keywords: Iterable[str]) -> bool:
        """Case-insensitive substring check against any keyword"""
        lowered = text.lower()
        return any(keyword in lowered for keyword in keywords)
