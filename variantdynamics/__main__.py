import argparse

from variantdynamics.pipeline import PipelineConfig, run_pipeline


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="variantdynamics",
        description="Runs the complete variant analysis pipeline.",
    )
    parser.add_argument(
        "--output-dir", default="results", help="directory of the derived tables"
    )
    args = parser.parse_args(args)
    run_pipeline(PipelineConfig(output_dir=args.output_dir))


if __name__ == "__main__":
    main()
