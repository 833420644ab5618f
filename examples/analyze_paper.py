#!/usr/bin/env python3
"""
Example: Analyse a paper from Python

Runs one PaperInsight session over a text file: analysis, related work,
optional illustration and read-aloud audio, and any follow-up questions.

Requirements:
    pip install -e ".[examples]"
    echo "GEMINI_API_KEY=..." > .env

Usage:
    python examples/analyze_paper.py paper.txt
    python examples/analyze_paper.py paper.txt --language English --image --audio out/
    python examples/analyze_paper.py paper.txt -q "What was the sample size?"
"""

import argparse
import asyncio
import base64
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parent.parent
load_dotenv(ROOT / ".env")


async def main(args: argparse.Namespace) -> int:
    from paperinsight.audio import FileSink
    from paperinsight.core.schemas import SessionSettings
    from paperinsight.llm import create_service
    from paperinsight.observability import configure_logging
    from paperinsight.orchestration import Sequencer

    configure_logging()

    document = Path(args.paper).read_text(encoding="utf-8")
    settings = SessionSettings(
        summary_length=args.length,
        voice_id=args.voice,
        web_search_enabled=not args.no_search,
        target_language=args.language,
    )
    sink = FileSink(Path(args.audio)) if args.audio else None

    service = create_service()
    async with Sequencer(service, settings=settings, sink=sink, owns_service=True) as session:
        print(f"🔬  Analysing {args.paper} ({len(document)} chars)")
        result = await session.analyze(document)
        if result is None:
            print(f"❌  {session.state.status_message or 'Analysis failed'}")
            return 1

        await session.drain()
        result = session.state.result
        evidence = result.evidence

        print()
        print("📋  Summary")
        print(f"    {result.summary}")
        print()
        print("🌐  Translation")
        print(f"    {result.translation}")
        print()
        print(f"📊  Evidence: level {evidence.level} ({evidence.design})")
        print(f"    Quality: {evidence.quality_score}/10")
        print(f"    Reason: {evidence.reason}")
        print(f"    Limitations: {evidence.limitations}")

        if result.related_info:
            print()
            print("🔎  Related work")
            print(f"    {result.related_info.text}")
            for source in result.related_info.sources:
                print(f"    - {source.title or '(untitled)'}: {source.uri or '-'}")

        if args.image:
            image = await session.generate_image()
            if image:
                out = Path(args.image_out)
                out.write_bytes(base64.b64decode(image.data_base64))
                print(f"\n🖼   Illustration written to {out}")
            else:
                print(f"\n⚠️   {session.state.status_message}")

        if args.audio:
            blob = await session.synthesize_speech()
            if blob:
                print(f"\n🔊  Audio written to {sink.last_path} ({len(blob)} bytes)")
            else:
                print(f"\n⚠️   {session.state.status_message or 'No audio produced'}")

        for question in args.question or []:
            reply = await session.ask_question(question)
            print(f"\n❓  {question}")
            print(f"💬  {reply.text if reply else '(skipped)'}")

    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyse an academic paper with Gemini")
    parser.add_argument("paper", help="Path to a UTF-8 text file with the paper")
    parser.add_argument("--length", choices=["concise", "detailed"], default="detailed")
    parser.add_argument("--language", default="日本語", help="Target language for the summary")
    parser.add_argument("--voice", default="Aoede", help="Prebuilt TTS voice")
    parser.add_argument("--no-search", action="store_true", help="Skip related-work search")
    parser.add_argument("--image", action="store_true", help="Generate an illustration")
    parser.add_argument("--image-out", default="illustration.png")
    parser.add_argument("--audio", metavar="DIR", help="Synthesize speech into DIR")
    parser.add_argument("-q", "--question", action="append", help="Follow-up question")
    return parser.parse_args(argv)


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
