from __future__ import annotations

from enum import Enum
from typing import Dict, List

from mea_form.schemas import (
    FieldDescriptor,
    FieldType,
    FormSection,
    LevelConfig,
    MovementColumns,
    SchoolTier,
    SubjectStrategy,
)


class EducationLevel(str, Enum):
    KINDER = "kindergarten"
    SPED = "sped"
    ELEM = "elementary"
    JHS = "jhs"
    SHS = "shs"
    ALS = "als"
    SCHOOL_HEAD = "school_head"


# Answer keys the engine itself reads or defaults.
SCHOOL_NAME_KEY = "schoolName"
DISTRICT_KEY = "district"
SCHOOL_YEAR_KEY = "sy"
PERIOD_KEY = "quarter"
RESPONDENT_NAME_KEY = "respondentName"

PROFILE_SECTION_ID = "profile"
FAILURES_SECTION_ID = "failures_by_subject"
REVIEW_SECTION_ID = "review_submission"

FAILURE_KEY_PREFIX = "fail_subject_"

YES_NO = ["Yes", "No"]
DESIGNATIONS = ["Adviser", "SPED Coordinator", "School Head", "Administrator", "ALS Facilitator"]
TREND_OPTS = ["Increase", "Decrease", "No Change"]

# SY 2025-2026 quarter -> date ranges (movement figures are entered per range).
QUARTER_DATE_RANGES: Dict[str, List[str]] = {
    "Q1": ["June 16–30, 2025", "July 1–31, 2025", "August 1–22, 2025"],
    "Q2": ["August 26–31, 2025", "September 1–30, 2025", "October 1–24, 2025"],
    "Q3": ["November 3–30, 2025", "December 1–31, 2025", "January 1–23, 2026"],
    "Q4": ["January 26–31, 2026", "February 1–28, 2026", "March 1–20, 2026"],
}

SUBJECTS_KINDER = [
    "Language, Literacy, and Communication",
    "Socio-Emotional Development",
    "Values Development",
    "Physical Health and Motor Development",
    "Aesthetic / Creative Development",
    "Mathematics",
    "Understanding of the Physical and Natural Environment",
]

SUBJECTS_ELEM_JHS_BASE = [
    "Mother Tongue",
    "Filipino",
    "English",
    "Mathematics",
    "Science",
    "Araling Panlipunan",
    "Edukasyon sa Pagpapakatao (EsP)",
    "EPP / TLE",
    "MAPEH",
]

MAPEH = "MAPEH"
MAPEH_COMPONENTS = ["Music", "Arts", "Physical Education", "Health"]

SUBJECTS_SHS_CORE = [
    "Oral Communication",
    "Reading and Writing",
    "English for Academic and Professional Purposes",
    "Komunikasyon at Pananaliksik sa Wika at Kulturang Pilipino",
    "Pagbasa at Pagsusuri ng Iba’t Ibang Teksto Tungo sa Pananaliksik",
    "21st Century Literature from the Philippines and the World",
    "Contemporary Philippine Arts from the Region",
    "Understanding Culture, Society and Politics",
    "Introduction to the Philosophy of the Human Person",
    "Media and Information Literacy",
    "Empowerment Technologies",
    "General Mathematics",
    "Statistics and Probability",
    "Earth and Life Science",
    "Physical Science",
    "Physical Education and Health",
    "Personal Development",
]

ELEMENTARY_SCHOOLS = [
    "Bacong Central School",
    "Buntod Elementary School",
    "Calangag Elementary School",
    "Fausto Sarono Tubod Elementary School",
    "Isugan Elementary School",
    "Nazario Tale Memorial Elementary School",
    "Sacsac Elementary School",
    "San Miguel Elementary School",
    "Timbanga Elementary School",
    "Timbao Elementary School",
]

HIGH_SCHOOLS = [
    "Buntod High School",
    "Ong Che Tee Bacong High School",
    "San Miguel National High School",
]

SCHOOLS_LIST = ELEMENTARY_SCHOOLS + HIGH_SCHOOLS

SCHOOL_YEARS = ["2025-2026"]


def _f(field_id: str, label: str, field_type: FieldType = FieldType.NUMBER, **kw) -> FieldDescriptor:
    return FieldDescriptor(id=field_id, label=label, type=field_type, **kw)


COMMON_PROFILE_SECTION = FormSection(
    id=PROFILE_SECTION_ID,
    title="Basic Information",
    description="Please provide school identification and respondent details.",
    fields=[
        _f(SCHOOL_NAME_KEY, "School Name", FieldType.SELECT, options=SCHOOLS_LIST, required=True),
        _f("schoolId", "School ID", FieldType.TEXT, required=True),
        _f(DISTRICT_KEY, "District", FieldType.READ_ONLY, required=True),
        _f(SCHOOL_YEAR_KEY, "School Year", FieldType.SELECT, options=SCHOOL_YEARS, required=True),
        _f(PERIOD_KEY, "Quarter", FieldType.SELECT, options=list(QUARTER_DATE_RANGES), required=True),
        _f(RESPONDENT_NAME_KEY, "Respondent Name", FieldType.TEXT, required=True),
        _f("designation", "Designation / Role", FieldType.SELECT, options=DESIGNATIONS, required=True),
    ],
)

_MOVEMENT_DESCRIPTION = "Enter enrollment data for the specific dates below (based on SY 2025-2026 Quarters)."

TEACHER_MOVEMENT_SECTION = FormSection(
    id="movement",
    title="Monthly Learners' Movement",
    description=_MOVEMENT_DESCRIPTION,
    movement=True,
    fields=[
        _f("enroll_total", "Enrollment of the Month"),
        _f("move_in", "Transferred IN"),
        _f("move_out", "Transferred OUT"),
        _f("move_nlpa", "Classified as NLPA"),
    ],
)
TEACHER_MOVEMENT_COLUMNS = MovementColumns(enrollment="enroll_total", transferred_in="move_in", transferred_out="move_out")

KINDER_MOVEMENT_SECTION = FormSection(
    id="kinder_movement",
    title="Monthly Learners Movement",
    description=_MOVEMENT_DESCRIPTION,
    movement=True,
    fields=[
        _f("k_total", "Total Kindergarten Enrollment"),
        _f("k_trans_in", "Learners Transferred IN"),
        _f("k_trans_out", "Learners Transferred OUT"),
        _f("k_nlpa", "Learners Classified as NLPA"),
    ],
)

ALS_MOVEMENT_SECTION = FormSection(
    id="als_movement",
    title="Monthly Learners Movement",
    description=_MOVEMENT_DESCRIPTION,
    movement=True,
    fields=[
        _f("als_total", "Total ALS Enrollment"),
        _f("als_in", "Transferred IN"),
        _f("als_out", "Transferred OUT"),
        _f("als_nlpa", "Classified as NLPA"),
        _f("als_fail_drop", "Learners who Failed/Dropped"),
    ],
)

_KINDER_SECTIONS = [
    KINDER_MOVEMENT_SECTION,
    FormSection(
        id="kinder_inclusive",
        title="Inclusive Learners (Manifestations)",
        fields=[
            _f("k_sped_manif_total", "Total Learners with Manifestations"),
            _f("lbl_breakdown", "Breakdown by Type (Optional)", FieldType.HEADER),
            _f("k_sped_visual", "Visual"),
            _f("k_sped_hearing", "Hearing"),
            _f("k_sped_intel", "Intellectual"),
            _f("k_sped_phys", "Physical"),
            _f("k_sped_speech", "Speech / Language"),
        ],
    ),
    FormSection(
        id="kinder_eccd",
        title="ECCD Developmental Pre-Evaluation",
        description=(
            "Enter the TOTAL count of learners for each development level across all domains "
            "(Gross Motor, Fine Motor, Self-Help, Receptive/Expressive Language, Cognitive, Social-Emotional)."
        ),
        fields=[
            _f("eccd_sig_delay", "Significant Delay"),
            _f("eccd_slight_delay", "Slight Delay"),
            _f("eccd_avg", "Average Development"),
            _f("eccd_adv_slight", "Slightly Advanced"),
            _f("eccd_adv_high", "Highly Advanced"),
        ],
    ),
]

_SPED_SECTIONS = [
    FormSection(
        id="sped_profile",
        title="Inclusive Learners Profile",
        fields=[
            _f("sped_diag", "Learners with Diagnosis (Medical)"),
            _f("sped_manif", "Learners with Manifestations"),
        ],
    ),
    FormSection(
        id="sped_class",
        title="Disability Classification",
        fields=[
            _f("dis_visual", "Visual Impairment"),
            _f("dis_hearing", "Hearing Impairment"),
            _f("dis_intel", "Intellectual Disability"),
            _f("dis_autism", "Autism Spectrum Disorder"),
            _f("dis_ortho", "Orthopedic / Physical"),
            _f("dis_speech", "Speech / Language"),
            _f("dis_multi", "Multiple Disabilities"),
        ],
    ),
    FormSection(
        id="sped_support",
        title="Support Services & Homebound",
        fields=[
            _f("homebound_count", "Number of Homebound Learners"),
            _f("sped_teachers", "Availability of SPED Teachers (Yes/No)", FieldType.SELECT, options=YES_NO),
            _f("intervention_prog", "Availability of Intervention Programs (Yes/No)", FieldType.SELECT, options=YES_NO),
            _f("referral_mech", "Referral Mechanisms in Place (Yes/No)", FieldType.SELECT, options=YES_NO),
        ],
    ),
]

_SCHOOL_HEAD_SECTIONS = [
    FormSection(
        id="head_enrollment",
        title="Enrollment Summary",
        fields=[
            _f("enrollment_bosy", "Beginning of School Year (BOSY) Enrollment"),
            _f("enrollment_eosy", "End of School Year (EOSY) Enrollment (Prev Year)"),
            _f("enrollment_trend", "Enrollment Trend", FieldType.SELECT, options=TREND_OPTS),
        ],
    ),
    FormSection(
        id="head_personnel",
        title="Personnel Profile",
        fields=[
            _f("personnel_teach_m", "Teaching Personnel (Male)"),
            _f("personnel_teach_f", "Teaching Personnel (Female)"),
            _f("personnel_non_m", "Non-Teaching Personnel (Male)"),
            _f("personnel_non_f", "Non-Teaching Personnel (Female)"),
        ],
    ),
    FormSection(
        id="head_facilities",
        title="Facilities & Resources",
        fields=[
            _f("fac_classrooms", "Number of Classrooms"),
            _f("fac_toilets", "Number of Functional Toilets"),
            _f("fac_handwash", "Number of Handwashing Facilities"),
            _f("fac_seats", "Number of Seats"),
        ],
    ),
    FormSection(
        id="head_gad_learner",
        title="Learner Welfare (GAD)",
        fields=[
            _f("gad_bully", "Total Victims of Bullying"),
            _f("gad_abuse", "Total Victims of Child Abuse"),
            _f("gad_working", "Total Working Students"),
        ],
    ),
    FormSection(
        id="head_gad_personnel",
        title="Personnel Welfare & Health (GAD)",
        fields=[
            _f("health_senior", "Senior Citizen Personnel"),
            _f("health_comorb", "Personnel with Comorbidities"),
            _f("health_diabetes", "Personnel with Diabetes"),
            _f("health_hyper", "Personnel with Hypertension"),
            _f("health_preg", "Pregnant Personnel"),
        ],
    ),
    FormSection(
        id="head_orgs",
        title="Student Organizations",
        fields=[
            _f("org_unauth", "Presence of Unauthorized Orgs (Yes/No)", FieldType.SELECT, options=YES_NO),
            _f("org_list", "List of Organizations (if any)", FieldType.TEXT, placeholder="Separate with commas"),
        ],
    ),
]


def _with_epp_label(label: str) -> List[str]:
    return [label if s == "EPP / TLE" else s for s in SUBJECTS_ELEM_JHS_BASE]


LEVEL_CONFIGS: Dict[str, LevelConfig] = {
    EducationLevel.KINDER.value: LevelConfig(
        id=EducationLevel.KINDER.value,
        label="Kindergarten",
        sections=_KINDER_SECTIONS,
        school_tier=SchoolTier.ELEMENTARY,
        subject_strategy=SubjectStrategy.CURRICULUM,
        curriculum_subjects=SUBJECTS_KINDER,
        movement_columns=MovementColumns(enrollment="k_total", transferred_in="k_trans_in", transferred_out="k_trans_out"),
    ),
    EducationLevel.SPED.value: LevelConfig(
        id=EducationLevel.SPED.value,
        label="SPED (Special Education)",
        sections=_SPED_SECTIONS,
        school_tier=SchoolTier.ELEMENTARY,
    ),
    EducationLevel.ELEM.value: LevelConfig(
        id=EducationLevel.ELEM.value,
        label="Elementary",
        sections=[TEACHER_MOVEMENT_SECTION],
        school_tier=SchoolTier.ELEMENTARY,
        subject_strategy=SubjectStrategy.CURRICULUM,
        curriculum_subjects=_with_epp_label("EPP"),
        split_subject=MAPEH,
        split_components=MAPEH_COMPONENTS,
        movement_columns=TEACHER_MOVEMENT_COLUMNS,
    ),
    EducationLevel.JHS.value: LevelConfig(
        id=EducationLevel.JHS.value,
        label="Junior High School (G7-10)",
        sections=[TEACHER_MOVEMENT_SECTION],
        school_tier=SchoolTier.SECONDARY,
        subject_strategy=SubjectStrategy.CURRICULUM,
        curriculum_subjects=_with_epp_label("TLE"),
        split_subject=MAPEH,
        split_components=MAPEH_COMPONENTS,
        movement_columns=TEACHER_MOVEMENT_COLUMNS,
    ),
    EducationLevel.SHS.value: LevelConfig(
        id=EducationLevel.SHS.value,
        label="Senior High School (G11-12)",
        sections=[TEACHER_MOVEMENT_SECTION],
        school_tier=SchoolTier.SECONDARY,
        subject_strategy=SubjectStrategy.LIBRARY,
        library_subjects=SUBJECTS_SHS_CORE,
        movement_columns=TEACHER_MOVEMENT_COLUMNS,
    ),
    EducationLevel.ALS.value: LevelConfig(
        id=EducationLevel.ALS.value,
        label="Alternative Learning System (ALS)",
        sections=[ALS_MOVEMENT_SECTION],
        movement_columns=MovementColumns(enrollment="als_total", transferred_in="als_in", transferred_out="als_out"),
    ),
    EducationLevel.SCHOOL_HEAD.value: LevelConfig(
        id=EducationLevel.SCHOOL_HEAD.value,
        label="School Head",
        sections=_SCHOOL_HEAD_SECTIONS,
    ),
}
