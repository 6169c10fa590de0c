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

# Proposal optimizer input minimums (characters, after trimming whitespace).
MIN_PROPOSAL_TEXT_LENGTH = 50
MIN_USER_ENGAGEMENT_DATA_LENGTH = 20
MIN_COMMUNITY_NEEDS_LENGTH = 20

# Upper bounds keep prompts within model limits.
MAX_PROPOSAL_TEXT_LENGTH = 20000
MAX_CONTEXT_TEXT_LENGTH = 5000

MAX_PROPOSAL_TITLE_LENGTH = 200
MAX_PROPOSAL_FIELD_LENGTH = 5000
MAX_PROFILE_NAME_LENGTH = 120

PROPOSAL_ID_MAX_LENGTH = 128

# Date format used for stored dates; lexicographic order is chronological order.
DATE_FORMAT = "%Y-%m-%d"

DEFAULT_PROFILE_NAME = "New User"
