"""
Module: cli

Purpose:
    Command-line front end. Each subcommand maps onto one public entry
    point and prints its result as JSON on stdout.

Commands:
    assemble     Select questions from a pool
    balance      Trim a pool to target distributions
    solve        Greedy constraint assembly, optionally into disjoint forms
    versions     Select, generate versions, optionally persist to JSONL
    distribute   Assign versions to a student roster
    watermark    generate / verify / stamp watermark codes
    length       Recommend a test length
    audit        Audit a stored distribution and its security events

Exit codes:
    0 success, 1 build failure, 2 invalid configuration or input
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from exam_toolkit import __version__
from exam_toolkit.assembly import (
    AssemblyConfig,
    AssemblyConstraints,
    AssemblyStrategy,
    BalancePriority,
    LengthOptimizerConfig,
    SolverConstraint,
    apply_comprehensive_balance,
    assemble_greedy,
    optimize_length,
    select_questions,
    validate_balance,
)
from exam_toolkit.common.thresholds import ASSEMBLY
from exam_toolkit.config import BuildConfig
from exam_toolkit.controller import build_versions
from exam_toolkit.core.schemas import ValidationError
from exam_toolkit.core.utils.serialization import load_mapping, load_pool, load_records, load_students, to_json
from exam_toolkit.distribution import DistributionStrategy, distribute
from exam_toolkit.errors import BuildError, ConfigurationError
from exam_toolkit.forms import generate_disjoint_forms
from exam_toolkit.security import (
    audit_records,
    create_watermark,
    generate_tracking_metadata,
    generate_watermark_code,
    log_security_event,
    verify_watermark_code,
)
from exam_toolkit.storage import JsonlSink

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exam-toolkit",
        description="Assemble tests, generate parallel versions and distribute them securely",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    # assemble
    p = sub.add_parser("assemble", help="Select questions from a pool")
    p.add_argument("pool", type=Path, help="Question pool (.json or .jsonl)")
    p.add_argument("--strategy", default=AssemblyStrategy.BALANCED.value,
                   help="random, balanced, constraintBased or topicProportional")
    p.add_argument("--target", type=int, required=True, help="Number of questions to select")
    p.add_argument("--seed", default=None, help="Seed for reproducible selection")
    p.add_argument("--constraints", type=Path, default=None,
                   help="JSON file of topic/bloom/difficulty percentages (constraintBased)")
    p.set_defaults(handler=_cmd_assemble)

    # balance
    p = sub.add_parser("balance", help="Trim a pool to target distributions")
    p.add_argument("pool", type=Path, help="Question pool (.json or .jsonl)")
    p.add_argument("--constraints", type=Path, required=True, help="JSON file of target percentages")
    p.add_argument("--priority", default=BalancePriority.TOPIC.value, help="topic, difficulty or bloom")
    p.add_argument("--tolerance", type=float, default=ASSEMBLY.balance_tolerance,
                   help="Allowed deviation as a share of each target")
    p.set_defaults(handler=_cmd_balance)

    # solve
    p = sub.add_parser("solve", help="Greedy assembly under weighted constraints")
    p.add_argument("pool", type=Path, help="Question pool (.json or .jsonl)")
    p.add_argument("--rules", type=Path, required=True,
                   help="JSON list (or {\"constraints\": [...]}) of weighted constraints")
    p.add_argument("--target", type=int, required=True, help="Questions per test")
    p.add_argument("--forms", type=int, default=1, help="Number of disjoint forms")
    p.add_argument("--seed", default=None, help="Seed for the order of each form")
    p.set_defaults(handler=_cmd_solve)

    # versions
    p = sub.add_parser("versions", help="Generate test versions from a pool")
    p.add_argument("pool", type=Path, help="Question pool (.json or .jsonl)")
    p.add_argument("--count", type=int, default=2, help="Number of versions")
    p.add_argument("--target", type=int, required=True, help="Questions per version")
    p.add_argument("--strategy", default=AssemblyStrategy.BALANCED.value)
    p.add_argument("--seed", default=None)
    p.add_argument("--topics", default="", help="Comma-separated topic filter")
    p.add_argument("--constraints", type=Path, default=None,
                   help="JSON file of topic/bloom/difficulty percentages (constraintBased)")
    p.add_argument("--no-shuffle-choices", action="store_true", help="Keep original choice labels")
    p.add_argument("--output", type=Path, default=None, help="Append forms and versions to this JSONL file")
    p.set_defaults(handler=_cmd_versions)

    # distribute
    p = sub.add_parser("distribute", help="Assign versions to students")
    p.add_argument("students", type=Path, help="Student roster (.json or .jsonl)")
    p.add_argument("--versions", required=True, help="Comma-separated version labels, e.g. A,B,C")
    p.add_argument("--strategy", default=DistributionStrategy.BALANCED.value,
                   help="random, sequential, balanced or avoid-adjacent")
    p.add_argument("--seed", default=None)
    p.add_argument("--test-id", default=None, help="Parent test id for the audit log")
    p.add_argument("--actor", default=None, help="Who is distributing (audit)")
    p.add_argument("--output", type=Path, default=None, help="Append assignments and log to this JSONL file")
    p.set_defaults(handler=_cmd_distribute)

    # watermark
    p = sub.add_parser("watermark", help="Watermark codes")
    wm = p.add_subparsers(dest="watermark_command", required=True)

    g = wm.add_parser("generate", help="Issue a watermark code")
    g.add_argument("test_id")
    g.add_argument("label")
    g.add_argument("--student", default=None, help="Student id")
    g.set_defaults(handler=_cmd_watermark_generate)

    v = wm.add_parser("verify", help="Parse and format-check a code")
    v.add_argument("code")
    v.set_defaults(handler=_cmd_watermark_verify)

    s = wm.add_parser("stamp", help="Stamp a rendered PDF with a new code")
    s.add_argument("source", type=Path)
    s.add_argument("destination", type=Path)
    s.add_argument("--test-id", required=True)
    s.add_argument("--label", required=True)
    s.add_argument("--student", default=None, help="Student id")
    s.add_argument("--name", default=None, help="Student name printed top-left")
    s.add_argument("--pages", default=None, help="Comma-separated 0-based pages (default: all)")
    s.add_argument("--audit", type=Path, default=None, help="Append an export security event to this JSONL file")
    s.add_argument("--actor", default=None, help="Who is exporting (audit)")
    s.set_defaults(handler=_cmd_watermark_stamp)

    # length
    p = sub.add_parser("length", help="Recommend a test length")
    p.add_argument("--hours", type=float, required=True, help="Learning hours covered")
    p.add_argument("--topics", default="", help="Comma-separated topics")
    p.add_argument("--bloom-levels", default="", help="Comma-separated Bloom levels")
    p.add_argument("--coverage", type=float, default=0.8, help="Target topic coverage, 0-1")
    p.add_argument("--available", type=int, required=True, help="Questions available in the pool")
    p.set_defaults(handler=_cmd_length)

    # audit
    p = sub.add_parser("audit", help="Audit a stored distribution")
    p.add_argument("records", type=Path, help="JSONL file written by distribute --output")
    p.add_argument("--test-id", required=True, help="Parent test id of the distribution")
    p.set_defaults(handler=_cmd_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    try:
        return args.handler(args)
    except (ConfigurationError, ValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Error: file not found: {e.filename}", file=sys.stderr)
        return 2
    except BuildError as e:
        print(f"Build failed: {e}", file=sys.stderr)
        return 1


# ─────────────────────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────────────────────

def _cmd_assemble(args: argparse.Namespace) -> int:
    pool = load_pool(args.pool)
    config = AssemblyConfig(
        strategy=args.strategy,
        target_count=args.target,
        seed=args.seed,
        constraints=_load_constraints(args.constraints),
    )
    result = select_questions(pool, config)
    print(to_json(result))
    return 0


def _cmd_balance(args: argparse.Namespace) -> int:
    pool = load_pool(args.pool)
    constraints = _load_constraints(args.constraints)
    balanced = apply_comprehensive_balance(pool.questions, constraints, args.priority)

    output = {"selected": [q.id for q in balanced], "count": len(balanced)}
    if constraints.topic_distribution:
        validation = validate_balance(balanced, constraints.topic_distribution, args.tolerance)
        output["validation"] = validation.to_dict()
    print(to_json(output))
    return 0


def _cmd_solve(args: argparse.Namespace) -> int:
    pool = load_pool(args.pool)
    rules = [SolverConstraint.from_dict(r) for r in load_records(args.rules, collection_key="constraints")]
    if args.forms > 1:
        result = generate_disjoint_forms(pool.questions, rules, args.target, args.forms, seed=args.seed)
        if not result.forms:
            raise BuildError(result.warnings[0])
    else:
        result = assemble_greedy(pool, rules, args.target)
    print(to_json(result))
    return 0


def _cmd_versions(args: argparse.Namespace) -> int:
    pool = load_pool(args.pool)
    config = BuildConfig(
        target_count=args.target,
        num_versions=args.count,
        strategy=args.strategy,
        seed=args.seed,
        topics=_split(args.topics),
        constraints=_load_constraints(args.constraints),
        shuffle_choices=not args.no_shuffle_choices,
    )
    sink = JsonlSink(args.output) if args.output else None
    result = build_versions(pool, config, sink=sink)

    print(to_json({
        "seed": result.seed,
        "selected": len(result.selection.selected),
        "versions": [v.version_label for v in result.versions],
        "answer_keys": result.versions.answer_keys(),
        "warnings": list(result.warnings),
    }))
    return 0


def _cmd_distribute(args: argparse.Namespace) -> int:
    students = load_students(args.students)
    labels = _split(args.versions)
    sink = JsonlSink(args.output) if args.output else None
    result = distribute(
        students,
        version_ids=[f"version-{label}" for label in labels],
        version_labels=labels,
        strategy=args.strategy,
        seed=args.seed,
        sink=sink,
        actor=args.actor,
        parent_test_id=args.test_id,
    )
    print(to_json(result))
    return 0


def _cmd_watermark_generate(args: argparse.Namespace) -> int:
    print(generate_watermark_code(args.test_id, args.label, args.student))
    return 0


def _cmd_watermark_verify(args: argparse.Namespace) -> int:
    parsed = verify_watermark_code(args.code)
    print(to_json(parsed))
    return 0 if parsed.is_valid else 1


def _cmd_watermark_stamp(args: argparse.Namespace) -> int:
    # PyMuPDF is only needed for this command
    import fitz

    from exam_toolkit.output import stamp_pdf

    if args.pages:
        try:
            pages = [int(p) for p in _split(args.pages)]
        except ValueError as e:
            raise ConfigurationError(f"Invalid page list {args.pages!r}") from e
    else:
        with fitz.open(args.source) as doc:
            pages = list(range(doc.page_count))

    stamp = create_watermark(
        args.test_id,
        args.label,
        pages,
        student_id=args.student,
        student_name=args.name,
    )
    stamped = stamp_pdf(args.source, args.destination, stamp)
    if args.audit:
        log_security_event(
            JsonlSink(args.audit),
            "export",
            args.test_id,
            generate_tracking_metadata(stamp),
            actor=args.actor,
        )
    print(to_json({"code": stamp.code, "pages_stamped": stamped, "output": str(args.destination)}))
    return 0


def _cmd_length(args: argparse.Namespace) -> int:
    config = LengthOptimizerConfig(
        learning_hours=args.hours,
        target_coverage=args.coverage,
        available_questions=args.available,
        bloom_levels=tuple(_split(args.bloom_levels)),
        topics=tuple(_split(args.topics)),
    )
    print(to_json(optimize_length(config)))
    return 0


def _cmd_audit(args: argparse.Namespace) -> int:
    if not args.records.exists():
        raise FileNotFoundError(2, "No such file", str(args.records))
    result = audit_records(JsonlSink(args.records).read_records(), args.test_id)
    print(to_json(result))
    return 0 if result.secure else 1


def _load_constraints(path: Optional[Path]) -> Optional[AssemblyConstraints]:
    if path is None:
        return None
    return AssemblyConstraints.from_dict(load_mapping(path))


def _split(value: str) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


if __name__ == "__main__":
    sys.exit(main())
