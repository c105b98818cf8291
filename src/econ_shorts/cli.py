"""CLI Application for the Economy Shorts Script Studio."""

import asyncio
import base64
import logging
from pathlib import Path
from typing import NoReturn

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .credentials import CredentialStore
from .errors import ErrorKind, InvalidCredentialError, classify_error
from .models import (
    Idea,
    ImageGenerationConfig,
    SavedScript,
    Scene,
    Script,
    ScriptType,
    SpeechGenerationConfig,
    Storyboard,
    TextGenerationConfig,
)
from .service import GeminiService
from .session import DEFAULT_PROTAGONIST, ScriptSession

# Setup Typer and Console
app = typer.Typer(help="Economy Shorts Script Studio - Korean finance video scripts with Gemini")
key_app = typer.Typer(help="Manage the stored Gemini API key")
app.add_typer(key_app, name="key")
console = Console()

DEFAULT_CHARACTER = "짧은 머리에 동그란 안경을 쓴 친근한 경제 유튜버, 초록색 후드티"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
) -> None:
    """Generate viral finance video ideas, scripts and storyboards."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _get_store(api_key: str | None = None) -> CredentialStore:
    load_dotenv()
    if api_key:
        return CredentialStore(external_key=api_key, prefer_external=True)
    return CredentialStore.from_env()


def _get_service(
    store: CredentialStore,
    text_config: TextGenerationConfig | None = None,
    image_config: ImageGenerationConfig | None = None,
    speech_config: SpeechGenerationConfig | None = None,
) -> GeminiService:
    """Get the Gemini service."""
    if not store.has_key():
        console.print(
            "[bold red]Error:[/bold red] GEMINI_API_KEY not found in env, "
            "arguments or settings. Run `econ-shorts key set`.",
        )
        raise typer.Exit(code=1)
    return GeminiService(
        store,
        text_config=text_config,
        image_config=image_config,
        speech_config=speech_config,
    )


def _fail(
    e: Exception,
    store: CredentialStore,
    session: ScriptSession | None = None,
) -> NoReturn:
    kind = classify_error(e)
    if session is None and kind is ErrorKind.INVALID_CREDENTIAL:
        store.clear()
    message = session.error if session and session.error else str(e)
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")
    if kind is ErrorKind.QUOTA_EXCEEDED:
        console.print(
            Panel(
                "안정적인 생성을 위해 본인의 API 키를 다시 확인해주세요.\n"
                "Reconnect a key with [bold]econ-shorts key set[/bold].",
                title="무료 사용량 초과",
                border_style="yellow",
            ),
        )
    elif kind is ErrorKind.INVALID_CREDENTIAL:
        console.print(
            "[yellow]The API key was forgotten. "
            "Run `econ-shorts key set` to reconnect.[/yellow]",
        )
    raise typer.Exit(code=1) from e


def _show_ideas(ideas: list[Idea]) -> None:
    table = Table(title="추천 영상 아이디어", show_lines=True)
    table.add_column("#", justify="right", style="bold")
    table.add_column("Title", style="green")
    table.add_column("Premise")
    for number, idea in enumerate(ideas, start=1):
        table.add_row(str(number), idea.title, idea.premise)
    console.print(table)


def _generate_ideas(session: ScriptSession, keyword: str) -> list[Idea]:
    console.rule("[bold blue]Step 1: Idea Generation")
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("아이디어 구상 중...", total=None)
        ideas = asyncio.run(session.generate_ideas(keyword))
        progress.update(task, completed=100)
    _show_ideas(ideas)
    return ideas


def _generate_script(session: ScriptSession, idea: Idea) -> Script:
    console.rule("[bold purple]Step 2: Script Writing")
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task(
            f"대본 구조를 적용하고 있습니다... ({session.protagonist_name})",
            total=None,
        )
        sections = asyncio.run(session.select_idea(idea))
        progress.update(task, completed=100)

    script = Script(title=idea.title, sections=sections)
    for section in script.sections:
        console.print(
            Panel(section.content, title=f"{section.id}. {section.title}", border_style="cyan"),
        )
    console.print(
        Panel(
            f"[bold]Title:[/bold] {script.title}\n"
            f"[bold]Type:[/bold] {session.script_type.value}\n"
            f"[bold]Sections:[/bold] {len(script.sections)}\n"
            f"[bold]Length:[/bold] {script.length} characters",
            title="Script Generated",
            border_style="green",
        ),
    )
    return script


def _save_data_uri(data_uri: str, output_path: Path) -> str:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(base64.b64decode(data_uri.split("base64,", 1)[-1]))
    return str(output_path)


def _is_fatal(e: Exception) -> bool:
    return classify_error(e) in (ErrorKind.QUOTA_EXCEEDED, ErrorKind.INVALID_CREDENTIAL)


def _render_images(
    service: GeminiService,
    scenes: list[Scene],
    images_dir: Path,
    character: str,
    reference_image: str | None,
) -> None:
    console.rule("[bold cyan]Phase 2: Scene Images")
    images_dir.mkdir(parents=True, exist_ok=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Rendering Scenes...", total=len(scenes))

        for scene in scenes:
            img_path = images_dir / f"scene_{scene.id:03d}.png"
            if img_path.exists():
                scene.image_path = str(img_path)
                progress.advance(task)
                continue

            try:
                data_uri = asyncio.run(
                    service.generate_image(
                        scene.image_prompt,
                        protagonist_desc=character,
                        reference_image=reference_image,
                    ),
                )
                scene.image_path = _save_data_uri(data_uri, img_path)
            except Exception as e:
                if _is_fatal(e):
                    raise
                console.print(
                    f"[yellow]Warning: Failed to generate scene {scene.id}: {escape(str(e))}[/yellow]",
                )

            progress.advance(task)


def _render_speech(
    service: GeminiService,
    scenes: list[Scene],
    audio_dir: Path,
    voice: str | None,
) -> None:
    console.rule("[bold magenta]Phase 3: Narration")
    audio_dir.mkdir(parents=True, exist_ok=True)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        console=console,
    ) as progress:
        task = progress.add_task("Recording Narration...", total=len(scenes))

        for scene in scenes:
            wav_path = audio_dir / f"scene_{scene.id:03d}.wav"
            try:
                wav = asyncio.run(service.generate_speech(scene.description, voice))
                if wav:
                    wav_path.write_bytes(wav)
                    scene.audio_path = str(wav_path)
            except Exception as e:
                if _is_fatal(e):
                    raise
                console.print(
                    f"[yellow]Warning: Failed to narrate scene {scene.id}: {escape(str(e))}[/yellow]",
                )

            progress.advance(task)


@app.command()
def ideas(
    keyword: str = typer.Argument("", help="Topic or keyword, e.g. '삼성전자 주가'"),
    api_key: str | None = typer.Option(
        None,
        envvar="GEMINI_API_KEY",
        help="Google Gemini API Key",
    ),
    model: str = typer.Option(
        "gemini-3-flash-preview",
        "--model",
        help="Gemini model for text generation",
    ),
) -> None:
    """Suggest five viral video titles for a topic."""
    store = _get_store(api_key)
    service = _get_service(store, text_config=TextGenerationConfig(model=model))
    session = ScriptSession(service, store)
    try:
        _generate_ideas(session, keyword)
    except Exception as e:
        _fail(e, store, session)


@app.command()
def script(
    keyword: str = typer.Argument("", help="Topic or keyword, e.g. '삼성전자 주가'"),
    pick: int | None = typer.Option(
        None,
        "--pick",
        min=1,
        help="Number of the idea to write (prompted when omitted)",
    ),
    name: str = typer.Option(DEFAULT_PROTAGONIST, "--name", help="Protagonist name"),
    script_type: ScriptType = typer.Option(
        ScriptType.SHORTS,
        "--type",
        help="shorts (1000-1200 chars) or longform (about 5000 chars)",
    ),
    output_dir: Path = typer.Option(
        Path("./output"),
        help="Directory to save script.json",
    ),
    api_key: str | None = typer.Option(
        None,
        envvar="GEMINI_API_KEY",
        help="Google Gemini API Key",
    ),
    model: str = typer.Option(
        "gemini-3-flash-preview",
        "--model",
        help="Gemini model for text generation",
    ),
    temperature: float | None = typer.Option(
        None,
        help="Temperature for creative writing",
    ),
) -> None:
    """Generate ideas for a topic, pick one and write its script."""
    store = _get_store(api_key)
    service = _get_service(
        store,
        text_config=TextGenerationConfig(model=model, temperature=temperature),
    )
    session = ScriptSession(service, store, protagonist_name=name, script_type=script_type)

    try:
        found = _generate_ideas(session, keyword)
        if not found:
            console.print("[bold red]Error:[/bold red] No ideas were returned.")
            raise typer.Exit(code=1)
        if pick is None:
            pick = typer.prompt("Idea number", type=int, default=len(found))
        if not 1 <= pick <= len(found):
            console.print(
                f"[bold red]Error:[/bold red] Pick a number between 1 and {len(found)}.",
            )
            raise typer.Exit(code=1)

        result = _generate_script(session, found[pick - 1])
    except typer.Exit:
        raise
    except Exception as e:
        _fail(e, store, session)

    output_dir.mkdir(parents=True, exist_ok=True)
    script_path = output_dir / "script.json"
    with script_path.open("w", encoding="utf-8") as f:
        saved = SavedScript(
            title=result.title,
            sections=result.sections,
            script_type=session.script_type,
        )
        f.write(saved.model_dump_json(indent=2))
    console.print(f"Script saved to: [underline]{script_path.absolute()}[/underline]")


@app.command()
def storyboard(
    script_path: Path = typer.Argument(..., help="Path to the script.json file"),
    character: str = typer.Option(
        DEFAULT_CHARACTER,
        "--character",
        help="Protagonist appearance used in every image",
    ),
    script_type: ScriptType | None = typer.Option(
        None,
        "--type",
        help="shorts (10-12 scenes) or longform (35-50 scenes), defaults to the saved type",
    ),
    images: bool = typer.Option(False, "--images/--no-images", help="Render scene images"),
    speech: bool = typer.Option(False, "--speech/--no-speech", help="Record narration"),
    reference: Path | None = typer.Option(
        None,
        help="Reference image of the protagonist (PNG)",
    ),
    voice: str = typer.Option("Kore", help="Prebuilt voice name for narration"),
    aspect_ratio: str = typer.Option("16:9", help="Aspect ratio of scene images"),
    output_dir: Path | None = typer.Option(
        None,
        help="Directory to save the storyboard (defaults to script dir / storyboard)",
    ),
    api_key: str | None = typer.Option(
        None,
        envvar="GEMINI_API_KEY",
        help="Google Gemini API Key",
    ),
) -> None:
    """Split a script into scenes, optionally with images and narration."""
    if not script_path.exists():
        console.print(f"[bold red]Error:[/bold red] File {script_path} not found.")
        raise typer.Exit(code=1)
    if output_dir is None:
        output_dir = script_path.parent / "storyboard"

    store = _get_store(api_key)
    service = _get_service(
        store,
        image_config=ImageGenerationConfig(aspect_ratio=aspect_ratio),
        speech_config=SpeechGenerationConfig(voice_name=voice),
    )

    reference_image = None
    if reference is not None:
        reference_image = base64.b64encode(reference.read_bytes()).decode("ascii")

    try:
        with script_path.open("r", encoding="utf-8") as f:
            source = SavedScript.model_validate_json(f.read())
        script_type = script_type or source.script_type or ScriptType.SHORTS

        console.rule("[bold blue]Phase 1: Storyboard")
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Splitting script into scenes...", total=None)
            scenes = asyncio.run(service.extract_scenes(source.text, character, script_type))
            progress.update(task, completed=100)

        board = Storyboard(title=source.title, scenes=scenes)
        output_dir.mkdir(parents=True, exist_ok=True)
        board_path = output_dir / "storyboard.json"
        with board_path.open("w", encoding="utf-8") as f:
            f.write(board.model_dump_json(indent=2))
        console.print(
            Panel(
                f"[bold]Title:[/bold] {board.title}\n"
                f"[bold]Scenes:[/bold] {len(board.scenes)}",
                title="Storyboard Generated",
                border_style="green",
            ),
        )

        if images:
            _render_images(service, board.scenes, output_dir / "images", character, reference_image)
        if speech:
            _render_speech(service, board.scenes, output_dir / "audio", voice)

        # Update JSON with artifact paths
        with board_path.open("w", encoding="utf-8") as f:
            f.write(board.model_dump_json(indent=2))

        console.rule("[bold green]Production Complete")
        console.print(f"Output saved to: [underline]{output_dir.absolute()}[/underline]")

    except Exception as e:
        _fail(e, store)


@app.command()
def speak(
    text: str = typer.Argument(..., help="Text to narrate"),
    voice: str = typer.Option("Kore", help="Prebuilt voice name"),
    output: Path = typer.Option(Path("narration.wav"), help="Where to write the WAV file"),
    api_key: str | None = typer.Option(
        None,
        envvar="GEMINI_API_KEY",
        help="Google Gemini API Key",
    ),
) -> None:
    """Narrate a piece of text into a WAV file."""
    store = _get_store(api_key)
    service = _get_service(store, speech_config=SpeechGenerationConfig(voice_name=voice))
    try:
        wav = asyncio.run(service.generate_speech(text, voice))
    except Exception as e:
        _fail(e, store)

    if not wav:
        console.print("[yellow]Nothing to narrate.[/yellow]")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(wav)
    console.print(f"Narration saved to: [underline]{output.absolute()}[/underline]")


@key_app.command("set")
def key_set(
    key: str = typer.Option(
        ...,
        prompt="Gemini API key",
        hide_input=True,
        help="API key starting with 'AIza'",
    ),
) -> None:
    """Store an API key for later runs."""
    store = CredentialStore()
    try:
        store.set(key)
    except InvalidCredentialError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    console.print(f"[green]API key saved to {store.path}[/green]")


@key_app.command("clear")
def key_clear() -> None:
    """Forget the stored API key."""
    store = CredentialStore()
    store.clear()
    console.print("API key cleared.")


@key_app.command("status")
def key_status() -> None:
    """Show whether an API key is available."""
    load_dotenv()
    store = CredentialStore.from_env()
    key = store.get()
    if not key:
        console.print("[yellow]No API key connected.[/yellow]")
        raise typer.Exit(code=1)
    console.print(f"API key connected: {key[:4]}…{key[-4:]}")


if __name__ == "__main__":
    app()
