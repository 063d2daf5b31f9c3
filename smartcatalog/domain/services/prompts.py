from smartcatalog.domain.services.constants import (
    HEALTH_CHECK_REPLY,
    MAX_RECOMMENDATIONS,
    PROMPT_MIN_SCORE,
)

def system_prompt() -> str:
    return (
        "You are a helpful shopping assistant helping customers find the perfect products. "
        "Return strict JSON only."
    )

def user_task(query: str, products_json: str) -> str:
    output_format = (
        '[{"id":<product id>,'
        '"explanation":"natural, conversational reason this product fits",'
        '"relevance_score":<1-10>}]'
    )

    style = (
        "EXPLANATIONS:\n"
        "- Write like you are personally recommending to a friend (2-3 sentences)\n"
        "- Focus on benefits and value, be specific about why it fits their needs\n"
        "- Avoid phrases like \"matches your query\" or \"key matches\"\n"
    )

    scoring = (
        "SCORING (1-10):\n"
        "9-10: perfect match for the specific needs\n"
        "7-8: very good match with minor limitations\n"
        "5-6: good option but may not be ideal\n"
        "3-4: okay alternative missing key features\n"
        "1-2: poor fit\n"
    )

    rules = (
        "RULES:\n"
        "- Use ONLY the products listed above\n"
        f"- Only include products scoring {PROMPT_MIN_SCORE} or higher; if none do, return []\n"
        f"- At most {MAX_RECOMMENDATIONS} products, best matches first\n"
        "- Format: a strict JSON array, no prose, no code fences"
    )

    return (
        f'USER REQUEST: "{query}"\n\n'
        f"AVAILABLE PRODUCTS:\n{products_json}\n\n"
        + style + "\n"
        + scoring + "\n"
        + rules + "\n\n"
        + "OUTPUT FORMAT: " + output_format
    )

def health_prompt() -> str:
    return f'Respond with exactly "{HEALTH_CHECK_REPLY}"'
