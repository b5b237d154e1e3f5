"""
Prompt templates for every pipeline stage.

Generation options shape two things: the analysis perspective (what the
description, facts and specs focus on) and the anchor block appended to
every image prompt (style, aesthetic, complexity).
"""
from typing import Optional

from curious_explorer.explorer.state import GenerationOptions, default_options


IDENTIFY_PROMPT = (
    "Identify the single main object in this image. Return ONLY the name of the object. "
    "No punctuation, no extra words."
)


# ─────────────────────────────────────────────────────────────
# Analysis
# ─────────────────────────────────────────────────────────────

PERSPECTIVE_ANALYSIS = {
    "Industrial": """
ADOPT AN INDUSTRIAL ENGINEERING PERSPECTIVE.
- Description: Focus on heavy-duty construction, materials, and durability.
- Facts: Focus on manufacturing processes, tolerances, and industrial applications.
- Specs: Focus on load capacity, material grade, power consumption, or operating limits.
""",
    "Scientific": """
ADOPT A SCIENTIFIC RESEARCH PERSPECTIVE.
- Description: Focus on chemical/biological composition, anatomy, or physics principles.
- Facts: Focus on taxonomy, molecular structure, or scientific history.
- Specs: Focus on precise measurements, chemical formulas, or biological classification.
""",
    "Conceptual": """
ADOPT A CONCEPTUAL / FUTURISTIC PERSPECTIVE.
- Description: Focus on abstract form, theoretical function, and energy dynamics.
- Facts: Focus on potential future evolution, symbolic meaning, or theoretical physics.
- Specs: Focus on energy output, theoretical efficiency, or abstract dimensions.
""",
}

ANALYSIS_PROMPT = """Analyze the object: "{query}".
{perspective}
1. Classify its category (e.g., Food, Electronics, Biological, Mechanical, etc.).
2. Write a brief technical description (max 20 words).
3. Identify 5-7 distinct major internal components that would be visible in an exploded view.
4. List 3-5 short, interesting technical facts about this object.
5. Based on the category, provide 3-6 key characteristics/specs:
   - If Food: Nutrition facts (Calories, Protein, Fat, Sugar).
   - If Electronics/Mechanical: Technical specs (Power, Material, Dimensions, Speed).
   - If Biological: Biological stats (Lifespan, Habitat, Kingdom, Average Size).
   - If Other: Relevant metrics.
"""


def build_analysis_prompt(query: str, options: Optional[GenerationOptions] = None) -> str:
    perspective = (options or default_options()).get("perspective", "General")
    return ANALYSIS_PROMPT.format(query=query, perspective=PERSPECTIVE_ANALYSIS.get(perspective, ""))


# ─────────────────────────────────────────────────────────────
# Scan
# ─────────────────────────────────────────────────────────────

SCAN_PROMPT = """Look at this technical exploded view diagram.
Identify the specific screen coordinates for the following labeled parts: {parts}.

For each part found, return:
- The exact name from the list.
- A short 1-sentence visual description of what it looks like in this specific image.
- The X and Y coordinates (0-100) representing the CENTER of the component (not the text label).

CRITICAL COORDINATE SYSTEM INSTRUCTION:
- X=0 is the LEFT edge, X=100 is the RIGHT edge.
- Y=0 is the TOP edge, Y=100 is the BOTTOM edge.
- Do not use cartesian coordinates where Y=0 is the bottom.
"""


def build_scan_prompt(part_names: list[str]) -> str:
    return SCAN_PROMPT.format(parts=", ".join(part_names))


# ─────────────────────────────────────────────────────────────
# Synthesis
# ─────────────────────────────────────────────────────────────

STYLE_ANCHORS = {
    "Default": ("Clean semi-realistic visualization with clean lines.", "Smooth surfaces."),
    "Schematic": (
        "Technical blueprint wireframe style, neon blue outlines, transparent structures.",
        "Holographic wireframe, no solid textures.",
    ),
    "Drawing": (
        "Digital concept art sketch, artistic strokes, technical illustration style.",
        "Hand-drawn shading effects with digital ink.",
    ),
}

PERSPECTIVE_AESTHETICS = {
    "Industrial": "Design Aesthetic: Heavy machinery, exposed bolts, hydraulics, raw steel and carbon fiber materials.",
    "Scientific": "Design Aesthetic: Laboratory precision, sterile clean look, focus on internal anatomy or molecular structure.",
    "Conceptual": "Design Aesthetic: Abstract futuristic interpretation, glowing energy cores, floating distinct symbolic parts.",
}

DETAIL_COMPLEXITY = {
    "Simple": "Complexity: LOW. Simplified geometry. Merge small parts into larger blocks. Show only 2-3 main components.",
    "Detailed": "Complexity: HIGH. Extreme mechanical intricacy. Show small screws, cables, circuits, and sub-mechanisms. 9-10 distinct components.",
}


def build_anchor_block(options: Optional[GenerationOptions] = None) -> str:
    """Style block shared by every view so the three renders stay consistent."""
    options = options or default_options()
    style_desc, texture_desc = STYLE_ANCHORS.get(options.get("style", "Default"), STYLE_ANCHORS["Default"])

    lines = [f"Style: {style_desc}", f"Texture: {texture_desc}"]
    aesthetic = PERSPECTIVE_AESTHETICS.get(options.get("perspective", "General"))
    if aesthetic:
        lines.append(aesthetic)
    complexity = DETAIL_COMPLEXITY.get(options.get("detailLevel", "Normal"))
    if complexity:
        lines.append(complexity)
    lines += [
        "Lighting: Ambient occlusion lighting to eliminate harsh shadows and ensure all crevices are visible.",
        "Background: Dark charcoal grey backdrop with heavy vignetting at the edges and a faint, "
        "semi-transparent holographic blue coordinate grid overlay.",
        "Viewpoint: Strict isometric view at exactly 45 degrees. The object is centered and fills 70% of the frame.",
        "Quality: High definition, sharp edges, minimalist aesthetic.",
    ]
    return "\n".join(lines)


def reference_instruction(subject: str, has_reference: bool) -> str:
    if not has_reference:
        return ""
    return f"Take the {subject} from the provided picture and generate a new one very similar to it."


def exploded_content(subject: str, part_names: list[str], anchor: str) -> str:
    return f"""Subject: A detailed volumetric deconstruction of {subject}.
The structure consists of the following separated components: {', '.join(part_names)}.
Layout requirement: The parts are pulled apart along the central axis (exploded view) but retain their relative alignment to the center.
Annotation Style: Include clean, thin, semi-transparent white technical leader lines extending from the major components into the surrounding negative space.
Constraint: Annotations should never be repeated for the same element.
{anchor}"""


def build_exploded_prompt(subject: str, part_names: list[str], anchor: str, has_reference: bool = False) -> str:
    """Exploded view generated directly (fast mode)."""
    return "\n".join(filter(None, [
        "[EXPLODED_VIEW]:",
        reference_instruction(subject, has_reference),
        exploded_content(subject, part_names, anchor),
    ]))


def build_assembled_prompt(subject: str, anchor: str, has_reference: bool = False) -> str:
    return "\n".join(filter(None, [
        "[ASSEMBLED_VIEW]:",
        reference_instruction(subject, has_reference),
        f"Subject: A pristine, whole {subject}.",
        "Condition: Everything is intact. No parts are removed or displaced. The object looks solid and unified.",
        anchor,
    ]))


def build_cutaway_prompt(subject: str, anchor: str) -> str:
    return "\n".join([
        "[CUTAWAY_VIEW]:",
        "Use this image as a strict reference for geometry and angle. "
        "Generate the exact same object but with a cutaway section revealing the insides.",
        f"Subject: A technical cross-section cutaway view of a {subject}.",
        "Condition: The object remains in the exact same position and angle as the assembled version. "
        "A precise 90-degree slice is removed from the front quadrant to reveal the internal mechanisms "
        "inside the shell. The outer silhouette remains largely intact to show context.",
        anchor,
    ])


def build_exploded_from_assembled_prompt(subject: str, part_names: list[str], anchor: str) -> str:
    """Exploded view referencing the generated assembled view (full mode)."""
    return "\n".join([
        "[EXPLODED_VIEW]:",
        "Use this image as a reference. Explode these exact parts outward.",
        exploded_content(subject, part_names, anchor),
    ])
