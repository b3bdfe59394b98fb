import pkgutil


class Files:
    ALIASES = pkgutil.get_data(__name__, "data/aliases.csv")


class Sources:
    WEEKLY_LINEAGES = (
        "https://covid-surveillance-data.cog.sanger.ac.uk/download/"
        "lineages_by_ltla_and_week.tsv"
    )
    DAILY_LINEAGES = "data/raw/ons_cis_lineages.csv"
    REGIONAL_DELTA = "data/raw/delta_by_region.rds"
    DAILY_CASES = "data/raw/england_daily_cases.csv"

    TIMEOUT = 60


class Columns:
    DATE = "collection_date"
    DATE_BIN = "collection_date_bin"
    LINEAGE = "lineage"
    REGION = "region"
    COUNT = "count"
    LINEAGE_COUNT = "lineage_count"
    TOTAL_COUNT = "total_count"
    FREQUENCY = "lineage_frequency"
    DETECTED = "detected"

    # columns that are renamed to DATE after snake casing
    DATE_ALIASES = ["date", "week_end_date", "week", "collection_week"]

    REGION_ALIASES = ["phecname", "phec_name", "region_name", "rgn19nm"]

    DETECTED_ALIASES = ["is_delta", "delta", "delta_detected", "sgtp"]

    CASE_DATE = "date"
    CASE_ALIASES = [
        "cases",
        "new_cases_by_specimen_date",
        "new_cases_by_publish_date",
        "daily_cases",
    ]


class Lineages:
    OTHER = "Other"
    DELTA = "B.1.617.2"
    BA2 = "BA.2"

    MAJOR = [
        "B.1.1.7",
        "B.1.617.2",
        "BA.1",
        "BA.2",
        "BA.2.75",
        "BA.4",
        "BA.5",
        "BA.5.3",
        "XBB",
    ]

    COLORS = {
        "B.1.1.7": "#56B4E9",
        "B.1.617.2": "#E69F00",
        "BA.1": "#009E73",
        "BA.2": "#D55E00",
        "BA.2.75": "#CC79A7",
        "BA.4": "#0072B2",
        "BA.5": "#F0E442",
        "BA.5.3": "#882255",
        "XBB": "#999999",
        "Other": "#666666",
    }


class Analysis:
    # growth phase extraction
    MIN_RUN = 3
    END_POLICY = "peak"
    FIXATION_THRESHOLD = 0.98

    # logistic fit
    INITIAL_S = 0.1
    MAX_ITER = 100

    # ONS-CIS style data is binned into 10 day periods
    BIN_DAYS = 10
    REGIONAL_FREQ = "W-SUN"

    # delta incidence
    CASE_COLUMN = "cases"
    AVERAGE_CASE_COLUMN = "cases_sevendayaveraged"
    CASES_START_DATE = "2020-09-05"

    # Rt estimation (EpiEstim defaults and Delta serial interval)
    RT_START_DATE = "2021-04-23"
    RT_END_DATE = "2021-11-01"
    MEAN_SI = 4.1
    STD_SI = 2.8
    RT_WINDOW = 7
    MEAN_PRIOR = 5.0
    STD_PRIOR = 5.0
    Q_LOWER = 0.025
    Q_UPPER = 0.975

    FLOAT_FORMAT = "%.10g"
