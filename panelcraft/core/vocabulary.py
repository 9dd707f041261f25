# Closed vocabularies shared with storyboard editors. Values are compared
# verbatim by callers, so spelling and order must not change.

SHOT_TYPES = (
    "Extreme Wide Shot (EWS)",
    "Wide Shot (WS)",
    "Medium Wide Shot (MWS)",
    "Medium Shot (MS)",
    "Medium Close-Up (MCU)",
    "Close-Up (CU)",
    "Extreme Close-Up (ECU)",
    "Over-the-Shoulder (OTS)",
    "Point of View (POV)",
    "Two-Shot",
    "Establishing Shot",
    "Master Shot",
    "Insert Shot",
    "Cutaway Shot",
)

CAMERA_ANGLES = (
    "Eye Level",
    "High Angle",
    "Low Angle",
    "Dutch Angle",
    "Birds Eye View",
    "Worms Eye View",
    "Over-the-Shoulder",
    "Profile Shot",
    "Three-Quarter View",
)

CAMERA_MOVEMENTS = (
    "Static",
    "Pan Left",
    "Pan Right",
    "Tilt Up",
    "Tilt Down",
    "Dolly In",
    "Dolly Out",
    "Tracking Shot",
    "Crane Shot",
    "Handheld",
    "Steadicam",
    "Zoom In",
    "Zoom Out",
    "Rack Focus",
)

LIGHTING_STYLES = (
    "Natural Light",
    "Golden Hour",
    "Blue Hour",
    "High Key",
    "Low Key",
    "Rembrandt Lighting",
    "Split Lighting",
    "Broad Lighting",
    "Short Lighting",
    "Butterfly Lighting",
    "Loop Lighting",
    "Rim Lighting",
    "Backlight",
    "Silhouette",
    "Chiaroscuro",
    "Film Noir",
    "Neon",
    "Candlelight",
    "Moonlight",
    "Studio Lighting",
)

COMPOSITION_RULES = (
    "Rule of Thirds",
    "Golden Ratio",
    "Leading Lines",
    "Symmetry",
    "Frame within Frame",
    "Depth Layers",
    "Negative Space",
    "Fill the Frame",
    "Patterns and Repetition",
    "Breaking the Pattern",
    "Triangular Composition",
    "Diagonal Lines",
    "S-Curve",
    "Radial Composition",
)

# Camera movement that adds no motion phrase to a prompt.
STATIC_MOVEMENT = "Static"
