"""Utilities for constructing prompts for the code generator."""

from __future__ import annotations


class PromptBuilder:
    """Builds the user messages sent alongside the system instructions."""

    def build_validation_prompt(self, prompt: str) -> str:
        return (
            "Can this web project be implemented using only HTML, CSS, and JavaScript "
            f'(no backend required)? The project is: "{prompt}"'
        )

    def build_generation_prompt(self, prompt: str) -> str:
        return f"""
<Request>
Create a complete, working website based on this description: "{prompt}"
</Request>

Output ONLY the raw JSON object.
""".strip()

    def build_modification_prompt(self, prompt: str, html: str, css: str, js: str) -> str:
        """Return the modification request with the current code embedded as fenced blocks."""

        return f"""
<Request>
Modify the following website code based on this request: "{prompt}"
</Request>

<CurrentCode>
Current HTML:
```html
{html}
```

Current CSS:
```css
{css}
```

Current JavaScript:
```javascript
{js}
```
</CurrentCode>

Please provide the complete updated code in the specified JSON format.
""".strip()
