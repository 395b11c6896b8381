#!/usr/bin/env python3
"""
Main entry point for the IELTS speaking coach.
Allows running the package with: python -m ielts_coach
"""
import asyncio
import sys

from .config import get_config
from .dialogue import (
    DialogueOrchestrator, OracleClient, PromptProfile, QuestionDrill,
    SpeechCaptureSession, SpeechSynthesizer, AnalysisReport
)
from .errors import UnsupportedCapability
from .infrastructure.llm import ChatCompletionsClient
from .utils import setup_logging


def build_speech_backends(config, text_mode: bool, use_tts: bool, on_end_command=None):
    """Return (recognizer, speech_output) for the chosen mode."""
    if text_mode:
        from .infrastructure.audio.speech.console import ConsoleRecognizer, ConsoleSpeechOutput
        return ConsoleRecognizer(on_end_command=on_end_command), ConsoleSpeechOutput()

    # Imported lazily so text mode works without PortAudio or Google credentials
    from .infrastructure.audio.speech.stt import GoogleStreamingRecognizer
    recognizer = GoogleStreamingRecognizer(language_code=config.language_code)
    if use_tts:
        from .infrastructure.audio.speech.tts import GoogleSpeechOutput
        speech_output = GoogleSpeechOutput(voice=config.tts_voice, language_code=config.language_code)
    else:
        from .infrastructure.audio.speech.console import ConsoleSpeechOutput
        speech_output = ConsoleSpeechOutput()
    return recognizer, speech_output


def display_report(report: AnalysisReport) -> None:
    print("\n" + "=" * 50)
    print("🎯 SPEAKING ANALYSIS")
    print("=" * 50)
    print(report.to_text() or "(empty report)")
    if report.criteria:
        print("-" * 50)
        for name, score in report.criteria.items():
            print(f"📊 {name}: {score:g}/9")
    if report.overall_band is not None:
        print(f"🏅 Overall Band Score: {report.overall_band:g}/9")


async def run_session(oracle: OracleClient, config, text_mode: bool, use_tts: bool,
                      silence_seconds: float) -> AnalysisReport:
    loop = asyncio.get_running_loop()
    stop_requested = asyncio.Event()
    recognizer, speech_output = build_speech_backends(
        config, text_mode, use_tts,
        on_end_command=lambda: loop.call_soon_threadsafe(stop_requested.set),
    )

    orchestrator = DialogueOrchestrator(
        oracle,
        SpeechCaptureSession(recognizer),
        SpeechSynthesizer(speech_output),
        silence_seconds=silence_seconds,
        on_transcript=print,
    )
    orchestrator.start()

    if text_mode:
        print("⌨️  Type your answers; each line is one utterance. Type /end to finish.")
        await stop_requested.wait()
    else:
        print("🎧 Listening... speak naturally, pause to let the examiner reply.")
        print("   Press Enter to end the conversation.")
        await asyncio.to_thread(sys.stdin.readline)

    print("🤔 Analyzing your conversation...")
    report = await orchestrator.stop()
    orchestrator.close()
    print(f"📈 Session metrics: {orchestrator.get_metrics()}")
    return report


async def run_drill(oracle: OracleClient, config, text_mode: bool, use_tts: bool,
                    silence_seconds: float) -> AnalysisReport:
    recognizer, speech_output = build_speech_backends(config, text_mode, use_tts)
    capture = SpeechCaptureSession(recognizer)
    drill = QuestionDrill(oracle, capture, SpeechSynthesizer(speech_output), silence_seconds=silence_seconds)
    print("🎲 Fetching a speaking question...")
    result = await drill.run()
    capture.close()
    if result.question:
        print(f"❓ {result.question}")
    if result.answer:
        print(f"🗣️  You: {result.answer}")
    return result.report


def main():
    """Command-line interface for the speaking coach."""

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        print(f"❌ Configuration Error: {e}")
        sys.exit(1)

    profile_name = config.profile
    silence_seconds = config.silence_timeout_seconds
    text_mode = "--text" in sys.argv
    drill_mode = "--drill" in sys.argv
    use_tts = config.enable_tts and "--no-tts" not in sys.argv

    for arg in sys.argv[1:]:
        if arg.startswith("--profile="):
            profile_name = arg.split("=", 1)[1]
        elif arg.startswith("--silence="):
            try:
                silence_seconds = float(arg.split("=", 1)[1])
            except ValueError:
                print("❌ Invalid silence value. Use --silence=SECONDS, e.g. --silence=5")
                sys.exit(1)
            if silence_seconds <= 0:
                print("❌ Silence window must be positive")
                sys.exit(1)

    try:
        profile = PromptProfile.from_preset(profile_name)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)
    if config.model_override:
        profile = profile.with_model(config.model_override)

    log_file = setup_logging(config.log_file, config.log_level)

    print(f"🎙️  IELTS speaking practice - profile: {profile.name} ({profile.model})")
    print(f"⏱️  Silence window: {silence_seconds:g}s")
    print(f"📝 Detailed logs: {log_file}")
    print("=" * 50)

    oracle = OracleClient(ChatCompletionsClient(config.api_key), profile)
    runner = run_drill if drill_mode else run_session

    try:
        report = asyncio.run(runner(oracle, config, text_mode, use_tts, silence_seconds))
    except UnsupportedCapability as e:
        print(f"❌ {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n🛑 Session aborted")
        sys.exit(130)

    display_report(report)


if __name__ == "__main__":
    main()
