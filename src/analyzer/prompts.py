"""
Prompt templates and output schemas for the analysis tasks.

Each task has a SYSTEM prompt, a USER template filled with str.format(),
and (for JSON tasks) a schema passed to ClaudeClient.analyze_json so the
answer is structured at the source.
"""

SEVERITIES = ("critical", "high", "medium", "low")


# =============================================================================
# KEYWORD DISCOVERY
# =============================================================================

KEYWORDS_SYSTEM = "You are an SEO expert. Respond with valid JSON only."

KEYWORDS_TEMPLATE = """Analyze this website and identify CATEGORY keywords for SEO competitor analysis.

IMPORTANT: Do NOT use brand names in keywords. Focus on what the product/service IS, not what it's CALLED.

Title: {title}
Meta Description: {meta_description}
H1 Tags: {h1}
H2 Tags: {h2}
Main Content Preview: {content}

Steps to follow:
1. Identify the brand name from the title/content (if this is a brand's website)
2. Determine what CATEGORY or PRODUCT TYPE this site represents
3. Create generic category keywords that competitors would also rank for

Examples:
- If site is "Nike.com" selling shoes -> Primary: "athletic footwear" NOT "Nike shoes"
- If site is "Canva.com" for design -> Primary: "graphic design software" NOT "Canva design tools"
- If site is "Stripe.com" for payments -> Primary: "payment processing platform" NOT "Stripe payment"

Return GENERIC category keywords (no brand names):
{{
  "primary": "category keyword (2-5 words, no brand names)",
  "secondary": ["related term 1", "related term 2", "related term 3", "related term 4"],
  "intent": "commercial",
  "reasoning": "Brief explanation focusing on the product category"
}}"""

KEYWORDS_SCHEMA = {
    "type": "object",
    "properties": {
        "primary": {"type": "string"},
        "secondary": {"type": "array", "items": {"type": "string"}},
        "intent": {"type": "string"},
        "reasoning": {"type": "string"},
    },
    "required": ["primary", "secondary"],
}


# =============================================================================
# COMPETITOR NAMING
# =============================================================================

COMPETITORS_SYSTEM = (
    "You are a competitive analysis expert. Identify actual competitor companies, "
    "not review sites or blogs. Respond with valid JSON only."
)

COMPETITORS_TEMPLATE = """You are analyzing a website that wants to rank for "{keyword}".

Website Title: {title}
Website Content Preview: {content}

Identify 8-10 DIRECT COMPETITOR COMPANIES (not blog posts or review sites) that offer similar products/services in this category.

Requirements:
- Must be actual product/service providers, NOT review sites, blogs, or comparison sites
- Must be direct competitors offering similar solutions
- Include well-known established players AND emerging competitors
- Return their most likely main product page URL (usually their homepage or main product page)

Examples of BAD competitors (DO NOT INCLUDE):
- PCMag, TechRadar, Lifewire (review sites)
- Blog posts about the topic
- "Best [keyword]" listicles

For each competitor, provide:
- company: Company name
- url: Their main product URL
- description: Brief 1-sentence description of what they offer

{{
  "competitors": [
    {{"company": "Company Name", "url": "https://company.com", "description": "..."}}
  ]
}}"""

COMPETITORS_SCHEMA = {
    "type": "object",
    "properties": {
        "competitors": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "company": {"type": "string"},
                    "url": {"type": "string"},
                    "description": {"type": "string"},
                },
                "required": ["company", "url"],
            },
        },
    },
    "required": ["competitors"],
}


# =============================================================================
# COMMON TOPICS
# =============================================================================

TOPICS_SYSTEM = "You are an SEO analyst. Respond with valid JSON only."

TOPICS_TEMPLATE = """Analyze these top ranking pages and identify common content themes/topics that appear across multiple pages:

{competitor_summary}

Return 5-10 common topics that appear in most pages:
{{
  "commonTopics": ["topic 1", "topic 2"]
}}"""

TOPICS_SCHEMA = {
    "type": "object",
    "properties": {
        "commonTopics": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["commonTopics"],
}


# =============================================================================
# GAP IDENTIFICATION
# =============================================================================

GAPS_SYSTEM = "You are an SEO expert. Respond with valid JSON only."

GAPS_TEMPLATE = """You are an SEO consultant. Analyze this website against competitor benchmarks and identify ALL significant SEO gaps.

TARGET KEYWORD: {keyword}

USER SITE:
- Title: {title}
- Meta Description: {meta_description}
- Word Count: {word_count}
- H1: {h1}
- H2 Count: {h2_count} ({h2_sample})
- H3 Count: {h3_count}
- Internal Links: {internal_links}
- Has Schema Markup: {has_schema}

COMPETITOR BENCHMARKS:
- Avg Word Count: {avg_word_count}
- Avg H2 Count: {avg_h2_count}
- Avg H3 Count: {avg_h3_count}
- Avg Internal Links: {avg_internal_links}
- Common Topics: {common_topics}
- Schema Usage: {schema_usage}/{total_competitors} have schema

Identify ALL significant SEO gaps (typically 4-10). For each gap:
- category: e.g., "Content Depth", "Content Structure", "Technical SEO", "Topic Coverage", "On-Page Optimization"
- severity: "critical" (major ranking factor), "high" (significant impact), "medium" (moderate impact), or "low" (minor improvement)
- finding: Specific, data-driven description with metrics
- impact: Quantify the ranking/traffic impact
- recommendation: Specific, actionable fix with target metrics
- estimatedEffort: "Quick win (<1 week)", "Medium (1-4 weeks)", or "Long-term (1+ months)"

{{
  "gaps": [
    {{
      "category": "Content Depth",
      "severity": "high",
      "finding": "Your page has {word_count} words vs {avg_word_count} average",
      "impact": "...",
      "recommendation": "...",
      "estimatedEffort": "Medium (1-4 weeks)"
    }}
  ]
}}"""

GAPS_SCHEMA = {
    "type": "object",
    "properties": {
        "gaps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string"},
                    "severity": {"type": "string", "enum": list(SEVERITIES)},
                    "finding": {"type": "string"},
                    "impact": {"type": "string"},
                    "recommendation": {"type": "string"},
                    "estimatedEffort": {"type": "string"},
                },
                "required": ["category", "severity", "finding", "impact", "recommendation"],
            },
        },
    },
    "required": ["gaps"],
}


# =============================================================================
# CONTENT OUTLINE
# =============================================================================

OUTLINE_SYSTEM = "You are an SEO content strategist."

OUTLINE_TEMPLATE = """Based on these SEO gaps, create a detailed content outline for improving the page:

PRIMARY KEYWORD TO TARGET: {keyword}
SUPPORTING KEYWORDS: {secondary}
CURRENT PAGE H1: {current_h1}
CURRENT H2 SECTIONS:
{current_h2}

GAPS TO ADDRESS:
{gap_findings}

Create a comprehensive content outline with:
- Recommended H1: Create a NEW H1 that's DIFFERENT from the current H1 ("{current_h1}"). Use the primary keyword "{keyword}" naturally.
- 8-12 H2 sections (numbered format: "### 1. Section Title")
- For each section, include: title, estimated word count in parentheses like "(Estimated Word Count: 200)", and a brief description
- Use the actual keyword "{keyword}" throughout, NOT placeholders like [Topic]

Format as markdown with this exact structure:
## Recommended H1
**"Your NEW H1 here using the keyword"**

## H2 Sections
### 1. Section Title (Estimated Word Count: 200)
Brief description of what to cover in this section.

### 2. Next Section Title (Estimated Word Count: 250)
Brief description...

Include a "Total Estimated Word Count" at the end."""


# =============================================================================
# EXECUTIVE SUMMARY
# =============================================================================

SUMMARY_SYSTEM = "You are an SEO consultant. Write concise, professional summaries."

SUMMARY_TEMPLATE = """Create a concise, professional executive summary (2-3 sentences) for this SEO competitive analysis report:

Website: {site_name}
URL: {url}
Target Keyword: "{keyword}"
{headline}

Key Issues: {urgent_count} critical/high-priority gaps, {medium_count} medium-priority gaps
Main Gap Categories: {categories}

Your Site Metrics vs Competitors:
- {word_count} words (vs {avg_word_count} competitor avg)
- {h2_count} H2s (vs {avg_h2_count} competitor avg)

Write a summary that:
1. States the headline result above prominently
2. Mentions they're targeting "{keyword}"
3. Highlights the most critical gap that needs immediate attention
4. Sets a positive, actionable tone about improvement potential

Return only the summary text (2-3 sentences), no markdown, no quotes."""

HEADLINE_SCORE = "Overall SEO Score: {score}/100 (do not mention search ranking positions)"
HEADLINE_RANKED = "Current Google Ranking: Position #{rank} (do not mention any 0-100 score)"
HEADLINE_UNRANKED = "Current Google Ranking: Not found in top {depth} results (do not mention any 0-100 score)"
