SYSTEM_PROMPT = (
    "You are an expert electrical pricing research assistant with knowledge "
    "of construction costs and market rates."
)


def work_type_label(work_type) -> str:
    wt = getattr(work_type, 'value', work_type)
    return str(wt).replace('_', ' ').lower()


def create_pricing_research_prompt(scope_of_work: str, city: str, work_type) -> str:
    """Prompt asking the model for a market price estimate as a JSON object."""
    label = work_type_label(work_type)
    return f"""You are an electrical pricing research assistant. Analyze the following job and provide pricing estimates based on current market rates.

JOB DETAILS:
- Type: {label}
- Location: {city}
- Scope: {scope_of_work}

TASK: Research typical pricing for this type of electrical work in {city}. Consider:
1. Labor costs for electricians in this area
2. Material costs
3. Typical markup/overhead
4. Local market rates from contractors

Provide a JSON response with this EXACT structure:
{{
  "averagePrice": <number>,
  "priceRange": {{
    "min": <number>,
    "max": <number>
  }},
  "sources": [
    {{
      "source": "<source name>",
      "price": <number>,
      "url": "<url if available>",
      "description": "<brief description>"
    }}
  ],
  "confidence": "<low|medium|high>",
  "searchQuery": "<the query you would use to search for this information>"
}}

Base confidence on:
- HIGH: Found 3+ specific comparable jobs in the same city
- MEDIUM: Found 2-3 general pricing guides or nearby city data
- LOW: Limited data, general national averages only

Return ONLY the JSON, no other text."""
