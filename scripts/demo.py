#!/usr/bin/env python3
"""
Demo script for the semantic answer cache.

Runs the engine in memory (no Redis) with the local embedding model and a
canned answer function, so it works without an LLM.
"""

import asyncio
import time

from semantic_answer_cache import SemanticCacheEngine
from semantic_answer_cache.repositories import LocalEmbeddingProvider

ANSWERS = {
    "Apa itu semantic cache?": (
        "Semantic cache adalah sistem caching yang menggunakan kemiripan makna "
        "untuk menemukan kembali jawaban dari query yang mirip."
    ),
    "Bagaimana cara kerja embedding?": (
        "Embedding mengubah teks menjadi vektor numerik, di mana teks dengan "
        "makna mirip memiliki vektor yang dekat."
    ),
}


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def ask_llm(query: str) -> str:
    """Stand-in for a slow LLM call."""
    await asyncio.sleep(0.5)
    return ANSWERS.get(query, f"(jawaban baru untuk: {query})")


async def demo_resolve(engine: SemanticCacheEngine) -> None:
    """Resolve a mix of new queries and paraphrases."""
    print_section("Resolve")

    queries = [
        "Apa itu semantic cache?",
        "Bagaimana cara kerja embedding?",
        "Jelaskan apa itu semantic cache",
        "Apa itu semantic cache?",
        "Apa itu machine learning?",
    ]

    for query in queries:
        start = time.perf_counter()
        result = await engine.resolve(query, ask_llm)
        duration = (time.perf_counter() - start) * 1000

        print(f"\n  Query: {query}")
        if result.is_hit:
            print(f"  ✓ CACHE HIT (similarity {result.similarity:.2%}, {duration:.1f}ms)")
        else:
            print(f"  ✗ Generated ({duration:.1f}ms)")
        print(f"  Response: {result.response[:80]}...")


async def demo_concurrent(engine: SemanticCacheEngine) -> None:
    """Resolve several queries at once."""
    print_section("Concurrent Requests")

    queries = [
        "Manfaat semantic cache?",
        "Keuntungan menggunakan semantic cache",
        "Cara deploy aplikasi ke production",
    ]
    results = await asyncio.gather(*(engine.resolve(q, ask_llm) for q in queries))

    for query, result in zip(queries, results):
        print(f"  {result.source.value:<10} {query}")


def print_stats(engine: SemanticCacheEngine) -> None:
    print_section("Statistics")

    stats = engine.get_stats()
    performance = stats["performance"]
    print(f"  Entries:    {stats['total_entries']} / {stats['max_entries']}")
    print(f"  Threshold:  {stats['similarity_threshold']:.2f}")
    print(f"  Model:      {stats['embedding_model']} ({stats['embedding_dimension']} dims)")
    print(f"  Hit rate:   {performance['hit_rate']:.2%}")
    print(f"  LLM calls:  {performance['llm_calls']}")


async def main() -> None:
    """Run all demos."""
    print("\n🚀 Semantic Answer Cache Demo")

    engine = SemanticCacheEngine.create(embedding_provider=LocalEmbeddingProvider.create())
    async with engine:
        await demo_resolve(engine)
        await demo_concurrent(engine)
        print_stats(engine)

    print("\n✅ Demo completed successfully!")


if __name__ == "__main__":
    asyncio.run(main())
