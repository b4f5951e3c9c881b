"""Heuristic optimization hints attached to an analysis result."""

from collections.abc import Sequence

from ..models import Artifact, Target

LARGE_CLIENT_BUNDLE_THRESHOLD = 150 * 1024
LARGE_SERVER_BUNDLE_THRESHOLD = 200 * 1024
SMALL_CHUNK_THRESHOLD = 10 * 1024
MIN_SMALL_CHUNKS_FOR_RECOMMENDATION = 3


def generate_recommendations(artifacts: Sequence[Artifact]) -> list[str]:
    recommendations = []

    client = [a for a in artifacts if a.target is Target.CLIENT]
    server = [a for a in artifacts if a.target is Target.SERVER]

    large = [a.name for a in client if a.raw_size > LARGE_CLIENT_BUNDLE_THRESHOLD]
    if large:
        recommendations.append(f"Consider code splitting for large bundles: {', '.join(large)}")

    small_chunks = [
        a for a in client if "chunk" in a.name and a.raw_size < SMALL_CHUNK_THRESHOLD
    ]
    if len(small_chunks) > MIN_SMALL_CHUNKS_FOR_RECOMMENDATION:
        recommendations.append("Consider merging small chunks to reduce HTTP requests")

    large_server = [a.name for a in server if a.raw_size > LARGE_SERVER_BUNDLE_THRESHOLD]
    if large_server:
        recommendations.append(
            f"Consider reducing server-side dependencies for large server bundles: "
            f"{', '.join(large_server)}"
        )

    return recommendations
