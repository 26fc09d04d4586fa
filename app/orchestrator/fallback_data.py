"""Static safe responses served when every provider fails."""

from app.orchestrator.schemas import LearnFallback, SeoData, SeoRequest

LEARN_FALLBACK_ANSWER = (
    "Manual SEO tip:\n"
    "- Title: keep main keyword early\n"
    "- Thumbnail: contrast + big text\n"
    "- Description: 3 lines + CTA\n"
    "(Full AI unavailable)"
)


def seo_fallback(req: SeoRequest) -> SeoData:
    subject = req.topic or "YouTube"
    return SeoData(
        title=f"Quick tips: {req.topic or 'Grow on YouTube'}",
        description=(
            f"Quick guide for {subject}:\n"
            "• Use clear title with 1 main keyword\n"
            "• Keep thumbnail 2–4 bold words\n"
            "• Add 10+ relevant tags\n"
            "CTA: Subscribe for more."
        ),
        tags=["youtube", "seo", "tips", "growth"],
    )


def learn_fallback() -> LearnFallback:
    return LearnFallback(answer=LEARN_FALLBACK_ANSWER)
