"""
Scripted demo of the recovery pipeline on typical LLM outputs.

Usage:
    python -m scripts.demo
"""

from dotenv import load_dotenv
load_dotenv()

from llm_json.config import ParserConfig
from llm_json.parser import LlmJson

SAMPLES = {
    "Prose and fences": 'Sure! Here is the data:\n```json\n{"name": "Ada", "langs": ["en", "fr"]}\n```\nAnything else?',
    "Python-style dict": "{'name': 'Ada', 'active': True, 'manager': None}",
    "Unquoted keys, trailing comma": '{name: "Ada", age: 36,}',
    "Apostrophes inside strings": "{'note': \"Ada's notebook\"}",
}

STREAM = '{"user": {"name": "Ada", "roles": ["admin", "dev"]}, "score": 9.5}'


def main():
    parser = LlmJson(ParserConfig.from_env())

    print("\n" + "=" * 60)
    print("  DEMO: LLM JSON Recovery")
    print("=" * 60)

    print("\n\n--- DEMO 1: Parsing messy output ---")
    for name, text in SAMPLES.items():
        result = parser.parse(text)
        print(f"\n{name}: {text!r}")
        if result.ok:
            print(f"  data: {result.data}")
            print(f"  warnings: {[w.code.value for w in result.warnings]}")
        else:
            print(f"  error: {result.error.code.value} ({result.error.message})")

    print("\n\n--- DEMO 2: Truncated output ---")
    truncated = '{"users": [{"name": "Al'
    result = parser.parse_partial(truncated)
    print(f"{truncated!r} -> {result.data if result.ok else result.error.message}")

    print("\n\n--- DEMO 3: Streaming previews ---")
    session = parser.create_session()
    for i in range(0, len(STREAM), 9):
        preview = session.write(STREAM[i:i + 9])
        print(f"  depth={session.depth} preview={preview.data if preview.ok else '-'}")
    final = session.finish()
    print(f"  final: {final.data if final.ok else final.error.message}")

    print("\n\n--- Demo complete ---")


if __name__ == "__main__":
    main()
