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

OPTIMIZE_PROPOSAL_PROMPT = """You are an AI-powered tool that analyzes user proposals and engagement data to provide suggestions for optimizing proposals.

Analyze the following proposal, user engagement data, and community needs, and provide suggestions for optimizing the proposal to better align with community interests and increase its chances of being accepted. Also, provide a revised version of the proposal incorporating the suggestions.

Respond with two fields:
- suggestions: a list of suggestions for optimizing the proposal.
- revised_proposal: a revised version of the proposal incorporating the suggestions.

Proposal:
{proposal_text}

User Engagement Data:
{user_engagement_data}

Community Needs:
{community_needs}
"""
