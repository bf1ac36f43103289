"""Run the portfolio pipeline on a local resume PDF.

Usage:
    python run_pipeline.py resume.pdf
    python run_pipeline.py resume.pdf --template classic-elegance --out portfolio.html
    python run_pipeline.py resume.pdf --deploy "Jane Doe"
"""

import argparse
import asyncio
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from crux.core import (
    PipelineDeps,
    PortfolioOrchestrator,
    SiteDeployer,
    accept_document,
)
from crux.core.intake import PDF
from crux.errors import PortfolioError
from crux.log import configure_logging
from crux.models import AppConfig, PortfolioState, TemplateReference
from crux.services import DeploymentService, LLMService, TemplateLibrary


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resume PDF -> portfolio HTML")
    parser.add_argument("resume", type=Path, help="Path to a resume PDF")
    parser.add_argument("--template", default="modern-professional", help="Server template id")
    parser.add_argument("--out", type=Path, default=Path("output/index.html"))
    parser.add_argument("--deploy", metavar="PROJECT_NAME", help="Also deploy under this name")
    return parser.parse_args()


async def run_pipeline(args: argparse.Namespace):
    """Run the pipeline and display results."""
    config = AppConfig()
    configure_logging(config.debug)

    deps = PipelineDeps(
        config=config,
        completion=LLMService(config.llm),
        templates=TemplateLibrary(config.templates.template_dir),
    )

    print("=" * 60)
    print("CRUX AI - Pipeline Run")
    print("=" * 60)
    print(f"\n📄 Resume: {args.resume}")
    print(f"🎨 Template: {args.template}")
    print(f"🔧 LLM Provider: {config.llm.provider} / {config.llm.model}")
    print("\n" + "=" * 60)

    content = args.resume.read_bytes()

    try:
        async with accept_document(args.resume.name, PDF, content, config.intake) as document:
            state = PortfolioState(
                document=document,
                template=TemplateReference(template_id=args.template),
            )
            final_state = await PortfolioOrchestrator(deps).run(state)

        print("\n✅ PIPELINE COMPLETED\n")

        profile = final_state.profile
        print(f"👤 {profile.display_name or 'unknown'}")
        print(f"   Roles: {profile.count('experience')}")
        print(f"   Projects: {profile.count('projects')}")

        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(final_state.html, encoding="utf-8")
        print(f"\n📝 HTML ({len(final_state.html)} chars) written to {args.out}")

        if args.deploy:
            async with DeploymentService(config.deploy) as platform:
                deployer = SiteDeployer(
                    platform, config.deploy, config.pipeline.artifact_min_length
                )
                result = await deployer.deploy(final_state.html, args.deploy)
            print(f"\n🚀 Deployed {result.final_name}: {result.url}")

        print("\n" + "=" * 60)

    except PortfolioError as e:
        print(f"\n❌ Pipeline failed: {e.message}")
        if e.details:
            print(f"   Details: {e.details}")


if __name__ == "__main__":
    asyncio.run(run_pipeline(parse_args()))
