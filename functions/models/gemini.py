# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import time
import logging
from google import genai
from google.genai import types
from models import api_config
from typing import List, Type, TypeVar

logger = logging.getLogger(__name__)

API_KEY_LOGGING_MESSAGE = "Ran with user-specified API key"
QUERY_RESPONSE_MAX_OUTPUT_TOKENS = 4000
SUGGESTION_TEMPERATURE = 0.4

T = TypeVar("T")


class GeminiInvalidResponseException(Exception):
    pass


def _get_client(api_key: str | None) -> genai.Client:
    if not api_key:
        api_key = api_config.DEFAULT_API_KEY
    else:
        logger.info(API_KEY_LOGGING_MESSAGE)
    return genai.Client(api_key=api_key)


def call_predict_with_schema(
    query: str,
    response_schema: Type[T],
    model: str | None = None,
    api_key: str | None = None,
    temperature: float = 0,
) -> T | List[T]:
    """
    Calls Gemini with a response schema for structured output.

    Raises GeminiInvalidResponseException when the model returns nothing that
    parses against the schema. API errors (quota, network) propagate.
    """
    client = _get_client(api_key)
    start_time = time.time()
    truncated_query = (query[:200] + "...") if len(query) > 200 else query
    logger.info("Calling Gemini with schema, prompt: '%s'", truncated_query)

    response = client.models.generate_content(
        model=model or api_config.DEFAULT_MODEL,
        contents=query,
        config=types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=response_schema,
            temperature=temperature,
            max_output_tokens=QUERY_RESPONSE_MAX_OUTPUT_TOKENS,
        ),
    )
    logger.info("Gemini with schema call took: %.2fs", time.time() - start_time)
    if not response.parsed:
        raise GeminiInvalidResponseException()
    return response.parsed
