"""
LLM-powered demo data generator for the Panchakarma Workload Allocator.
STRATEGY: One request per artefact (roster, daily notes) with strong prompts.
Notes come back as plain ward text and go through the same parser as real notes.
"""

import os
import json
import logging
import re
import google.generativeai as genai
from typing import List, Tuple, Any
from pydantic import ValidationError

from models import Patient, Scholar, SORTED_PROCEDURE_KEYS
from .notes_parser import parse_daily_notes

logger = logging.getLogger(__name__)


class DayGenerator:
    def __init__(self, api_key: str | None = None, model_name: str = "gemini-2.5-flash"):
        self.api_key = api_key or os.environ.get("GOOGLE_API_KEY")
        if not self.api_key:
            raise ValueError("GOOGLE_API_KEY not found. Please set it in environment.")

        genai.configure(api_key=self.api_key)
        self.model = genai.GenerativeModel(model_name)
        self.total_cost = 0.0

    def _estimate_cost(self, prompt_tokens: int, response_tokens: int) -> float:
        return (prompt_tokens * 0.075 + response_tokens * 0.30) / 1_000_000

    def _track_cost(self, response) -> float:
        cost = 0.0
        usage = getattr(response, 'usage_metadata', None)
        if usage is not None:
            cost = self._estimate_cost(usage.prompt_token_count, usage.candidates_token_count)
        self.total_cost += cost
        return cost

    def _robust_parse_json(self, raw_text: str) -> List[Any]:
        """
        Handles Markdown fences and normalises the payload to a list.
        """
        if not raw_text:
            return []

        clean_text = re.sub(r"```json\s*|\s*```", "", raw_text).strip()

        try:
            data = json.loads(clean_text)
        except json.JSONDecodeError:
            # Fallback: pull the outermost list out of surrounding prose
            match = re.search(r'(\[.*\])', clean_text, re.DOTALL)
            if not match:
                return []
            try:
                data = json.loads(match.group(1))
            except json.JSONDecodeError:
                return []

        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in ['scholars', 'result']:
                if key in data and isinstance(data[key], list):
                    return data[key]
            return [data]
        return []

    def _validate_scholars(self, items: List[Any]) -> List[Scholar]:
        scholars = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                continue
            item.setdefault('id', f"s{i + 1}")
            if 'gender' in item:
                item['gender'] = str(item['gender']).strip().upper()[:1]
            try:
                scholars.append(Scholar(**item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid scholar {i}: {e.json()}")
        return scholars

    def generate_scholars(self, count: int = 11) -> Tuple[List[Scholar], float]:
        prompt = f"""
        Generate {count} post-graduate Panchakarma scholars for an Indian ayurveda hospital ward.
        OUTPUT: JSON Array.
        FIELDS: id (string, e.g. "s1"), name (string, prefixed with "Dr. "), year (int 1, 2 or 3),
                gender ("M" or "F"), is_posted (bool).
        RULES:
        - Mix all three years; first years should be the largest group.
        - About two thirds of scholars are posted.
        """
        try:
            generation_config = genai.GenerationConfig(
                response_mime_type="application/json",
                temperature=0.7
            )
            response = self.model.generate_content(prompt, generation_config=generation_config)
            cost = self._track_cost(response)
            scholars = self._validate_scholars(self._robust_parse_json(response.text))
            logger.info(f"Generated {len(scholars)} scholars")
            return scholars, cost
        except Exception as e:
            logger.error(f"Scholar generation failed: {e}")
            return [], 0.0

    def generate_daily_notes(self, female_count: int = 10, male_count: int = 6) -> Tuple[str, float]:
        vocabulary = ", ".join(SORTED_PROCEDURE_KEYS[:25])
        prompt = f"""
        Write one morning's Panchakarma ward notes as plain text, no markdown.
        Start with a "♀Females ({female_count})" section then a "♂Male ({male_count})" section.
        Each patient line looks like: 4) Champa - 9th pps + 5th AB + 6th kati basti Dr Ayushi
        Use 1 to 4 procedures per patient chosen from: {vocabulary}.
        Make roughly one in eight patients an attendant: "5) Pooja - attendant".
        """
        try:
            response = self.model.generate_content(prompt)
            cost = self._track_cost(response)
            return response.text or "", cost
        except Exception as e:
            logger.error(f"Notes generation failed: {e}")
            return "", 0.0

    def generate_day(self, scholar_count: int = 11) -> Tuple[List[Patient], List[Scholar], float]:
        """Scholars + parsed patients for one synthetic day."""
        scholars, c1 = self.generate_scholars(scholar_count)
        notes, c2 = self.generate_daily_notes()
        patients = parse_daily_notes(notes) if notes else []
        return patients, scholars, c1 + c2
