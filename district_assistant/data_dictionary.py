"""
district_assistant/data_dictionary.py

Static vocabulary shared by the document builder and the assistant:
dataset names, human-friendly breakdown names, short dataset overviews and
the fixed "about this site" answers.
"""

DATASETS = ("graduation", "gpa", "demographics", "frp", "staff", "attendance")

# Breakdown keys each dataset reports, in build order.
DATASET_BREAKDOWNS = {
    "graduation": (
        "overall",
        "year",
        "gender",
        "federal_race_code",
        "chronically_absent",
        "english_learner_flag",
        "frp_eligible_flag",
        "special_education_flag",
    ),
    "gpa": ("overall", "year", "gender", "grade", "race", "chronically_absent"),
    "demographics": (
        "overall",
        "year",
        "gender",
        "grade_group",
        "frp",
        "chronic_absenteeism",
        "school_id",
    ),
    "frp": (
        "overall",
        "year",
        "gender",
        "grade_group",
        "race",
        "school_id",
        "chronic_absenteeism",
    ),
    "staff": ("overall", "race", "gender", "category", "year", "highest_degree"),
    "attendance": ("overall", "gender", "race", "grade_group", "school_id", "year"),
}

# Used when listing what a dataset can be sliced by.
BREAKDOWN_NAMES = {
    "overall": "overall",
    "year": "year (timeline)",
    "gender": "gender",
    "federal_race_code": "race (code)",
    "race": "race",
    "frp_eligible_flag": "FRP eligibility",
    "frp": "FRP",
    "chronically_absent": "chronic absenteeism",
    "chronic_absenteeism": "chronic absenteeism",
    "english_learner_flag": "English learner",
    "special_education_flag": "special education",
    "grade": "grade",
    "grade_group": "grade group",
    "school_id": "school",
    "category": "staff category",
    "highest_degree": "highest degree",
}

# Used in "no record found" answers, where the breakdown reads as a noun.
NOT_FOUND_NAMES = {
    "federal_race_code": "race code",
    "chronically_absent": "chronic absenteeism",
    "chronic_absenteeism": "chronic absenteeism",
    "english_learner_flag": "English learner status",
    "special_education_flag": "special education status",
    "frp_eligible_flag": "FRP eligibility",
    "gender": "gender",
    "year": "year",
    "race": "race",
    "grade": "grade",
    "grade_group": "grade group",
    "school_id": "school",
    "frp": "FRP",
    "category": "staff category",
    "highest_degree": "highest degree",
}

DATASET_OVERVIEWS = {
    "graduation": (
        "Graduation outcomes show the share of students who graduated vs not.\n"
        "The data can be sliced by demographics and program participation to understand patterns."
    ),
    "gpa": (
        "GPA data captures the distribution of student grade point averages across key bands.\n"
        "Use it to compare achievement across years and student groups."
    ),
    "demographics": (
        "Demographics summarize student population composition (not performance) across groups like race, gender, grade and school.\n"
        "Useful for context and equity analysis."
    ),
    "frp": (
        "FRP shows Free/Reduced Price meal eligibility distribution, a proxy for socioeconomic status.\n"
        "Compare patterns across schools and student groups."
    ),
    "staff": (
        "Staff data describes the workforce (gender, race, roles, and degrees).\n"
        "Use it for staffing profiles and diversity insights (not student outcomes)."
    ),
    "attendance": (
        "Chronic absenteeism tracks students missing substantial instructional time.\n"
        "Trends help target engagement and intervention strategies."
    ),
}

GENERIC_OVERVIEW = (
    "This dataset contains aggregated education metrics with multiple breakdowns "
    "for trend and equity analysis."
)

SITE_META = {
    "goal": (
        "Interactive data website that showcases educational equity insights in our "
        "district through charts, dashboards, and an AI assistant."
    ),
    "developer": {
        "name": "Anirudh Vasudevan",
        "summary": (
            "Full-stack developer focused on frontend and AI integration. MSCS @ UMN; "
            "builds responsive, data-rich applications with modern UX."
        ),
        "portfolio": "https://anirudhvasudevan.netlify.app/",
        "github": "https://github.com/anirxdh",
    },
    "mentor": {
        "name": "Erich Kummerfeld",
        "summary": (
            "Researcher in statistical and machine-learning methods for causal discovery. "
            "Develops algorithms, theory, and simulation benchmarks, applying them to health data."
        ),
        "homepage": "https://erichkummerfeld.com/",
    },
}

# Federal race/ethnicity codes used by the race breakdowns.
RACE_CODES = {
    "1": "Hispanic",
    "2": "American Indian",
    "3": "Asian",
    "4": "Black",
    "5": "Hawaiian",
    "6": "White",
    "7": "Two or more",
}

SCHOOL_CODES = {
    "1": "Alice Smith",
    "2": "Glen Lake",
    "5": "Eisenhower",
    "6": "Tanglen",
    "7": "Gatewood",
    "8": "Meadowbrook",
    "12": "HHS",
    "13": "NMS",
    "14": "WMS",
    "41": "Virtual Elementary",
    "42": "Virtual Secondary",
}
