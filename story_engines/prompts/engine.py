"""
Engine Prompt Envelope - shared by every enhancement engine
Each engine supplies its task framing and specific guidance; the envelope
wraps them around the complete, untruncated episode context.
"""

ENGINE_USER_PROMPT_TEMPLATE = """{task_prompt}

## Comprehensive Episode Context

The full episode and story bible follow as JSON. Nothing has been truncated;
use every character, scene and world detail that is relevant.

```json
{context_json}
```

## Specific Instructions

{specific_instructions}

## Critical Requirements

- Use ALL provided context; no character or detail is too minor
- Provide specific, actionable enhancements that elevate quality
- Focus on sophisticated storytelling techniques
- Ensure recommendations integrate seamlessly with existing content
- Prioritize cinematic quality over simplicity

---

Provide detailed, professional recommendations that transform episode "{episode_title}" of {series_title} into streaming-quality content.
"""
