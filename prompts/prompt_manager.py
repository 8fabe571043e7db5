import yaml
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from models.candidate import Candidate
from models.resource import DedupWindow
import logging

logger = logging.getLogger(__name__)


class PromptManager:
    """
    Manages prompt templates with hot-reload support

    Loads prompts from YAML files and builds the evaluator's system and
    user messages from a candidate, its page context and the dedup window.
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

        if prompt_name not in self.cache or self.cache[prompt_name].get('mtime') != mtime:
            logger.info(f"Loading/reloading prompt: {prompt_name}")
            with open(filepath, 'r') as f:
                config = yaml.safe_load(f)

            self.cache[prompt_name] = {
                'data': config,
                'mtime': mtime
            }

        return self.cache[prompt_name]['data']

    def build_evaluation_prompt(
        self,
        candidate: Candidate,
        scraped_text: str,
        window: DedupWindow,
        page_hints: Optional[Dict[str, Optional[str]]] = None,
        display_title: Optional[str] = None,
    ) -> Tuple[str, str]:
        """
        Build the (system, user) messages for one evaluation call

        Args:
            candidate: Candidate being evaluated; its claimed fields go in the <event> block
            scraped_text: Cached or freshly scraped page text, empty if unscrapable
            window: Existing events the model must check for duplicates
            page_hints: Metadata found while scraping (title, date, location, description)
            display_title: Title to show instead of the stored one (placeholder titles)

        Returns:
            Tuple of system prompt and user message
        """
        config = self.get_prompt_config("event_evaluation")

        claimed = {
            'title': display_title or candidate.title,
            'url': candidate.url,
            'date': candidate.event_date,
            'location': candidate.location,
            'source': candidate.source,
            'description': candidate.description,
        }

        sections = [config['event_header'], "", "<event>"]
        for label, key in config['event_fields']:
            missing = config['missing_description'] if key == 'description' else config['missing_value']
            sections.append(f"{label}: {claimed.get(key) or missing}")
        sections.append("</event>")

        hint_lines = self._build_page_hints(page_hints or {}, config['page_hints'])
        if hint_lines:
            sections.append("")
            sections.extend(hint_lines)

        sections.append("")
        sections.append("<scraped_page_content>")
        sections.append(scraped_text or config['unscraped_placeholder'])
        sections.append("</scraped_page_content>")

        if len(window) > 0:
            sections.append("")
            sections.append("<existing_events>")
            sections.append(config['existing_events']['instruction'])
            sections.append("")
            sections.append(window.render())
            sections.append("</existing_events>")

        sections.append("")
        sections.append(config['final_instruction'])

        return config['system_prompt'].strip(), "\n".join(sections)

    def _build_page_hints(self, hints: Dict[str, Optional[str]], config: Dict) -> List[str]:
        """Page metadata lines; empty when nothing was found"""
        lines = []
        for label, key in config.get('fields', []):
            value = hints.get(key)
            if value:
                lines.append(f"{label}: {value}")
        if not lines:
            return []
        return [config.get('header', 'Page metadata:')] + lines


# Singleton instance
prompt_manager = PromptManager()
