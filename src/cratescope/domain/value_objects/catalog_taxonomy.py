"""Static Discogs genre/style/format reference data.

Hey future me - Discogs has no cheap "list all genres" endpoint, and scraping
it through search eats the rate budget. These lists are hand-maintained and
only feed the search filter dropdowns, so being slightly out of date is fine.
"""

GENRES: tuple[str, ...] = (
    "Electronic",
    "Rock",
    "Jazz",
    "Funk / Soul",
    "Hip Hop",
    "Classical",
    "Pop",
    "Folk, World, & Country",
    "Reggae",
    "Blues",
    "Latin",
    "Non-Music",
    "Children's",
    "Stage & Screen",
    "Brass & Military",
)

GENRE_STYLE_MAP: dict[str, tuple[str, ...]] = {
    "Electronic": (
        "House", "Techno", "Ambient", "Drum n Bass", "Dubstep", "Electro",
        "IDM", "Trance", "UK Garage", "Breakbeat", "Synth-pop", "Experimental",
    ),
    "Rock": (
        "Alternative Rock", "Indie Rock", "Hard Rock", "Punk", "Heavy Metal",
        "Progressive Rock", "Psychedelic Rock", "Folk Rock", "Rock & Roll", "Grunge",
    ),
    "Jazz": (
        "Jazz-Funk", "Soul-Jazz", "Fusion", "Bebop", "Free Jazz", "Swing",
        "Big Band", "Contemporary Jazz", "Modal", "Avant-garde Jazz", "Smooth Jazz",
    ),
    "Funk / Soul": (
        "Disco", "Soul", "Funk", "R&B", "Gospel", "Neo Soul", "P.Funk",
        "Rhythm & Blues",
    ),
    "Hip Hop": (
        "Conscious", "Gangsta", "Instrumental", "Trap", "Boom Bap", "East Coast",
        "West Coast", "Southern", "Abstract", "Turntablism", "Golden Age",
    ),
    "Classical": (
        "Baroque", "Romantic", "Modern", "Contemporary", "Opera",
        "Chamber Music", "Orchestral", "Choral", "Symphony", "Concerto",
    ),
    "Pop": (
        "Ballad", "Chanson", "New Wave", "Europop", "Dance-pop",
        "Teen Pop", "Synthpop", "Power Pop", "Indie Pop", "J-pop", "K-pop",
    ),
    "Folk, World, & Country": (
        "Country", "Folk", "Bluegrass", "Celtic", "Traditional",
        "Cajun", "Nordic", "African", "Asian", "Middle Eastern", "European",
    ),
    "Reggae": (
        "Roots Reggae", "Dub", "Dancehall", "Ska", "Rocksteady",
        "Lovers Rock", "Ragga", "Reggae-Pop", "Calypso", "Soca",
    ),
    "Blues": (
        "Delta Blues", "Chicago Blues", "Electric Blues", "Jump Blues",
        "Country Blues", "Piano Blues", "Rhythm & Blues", "Texas Blues",
    ),
    "Latin": (
        "Salsa", "Bossa Nova", "Samba", "Tango", "Cumbia",
        "Bachata", "Merengue", "MPB", "Bolero", "Latin Jazz",
    ),
    "Non-Music": (
        "Spoken Word", "Field Recording", "Sound Art", "Sound Poetry",
        "Interview", "Radioplay", "Comedy", "Dialogue", "ASMR",
    ),
    "Children's": (
        "Educational", "Nursery Rhymes", "Story", "Musical",
        "Sing-Along", "Lullaby", "Action", "Game", "Religious",
    ),
    "Stage & Screen": (
        "Soundtrack", "Score", "Theme", "Musical",
        "Opera", "TV", "Video Game Music", "Audio Drama",
    ),
    "Brass & Military": (
        "Marching Band", "Military", "Brass Band", "Pipe & Drum",
        "Fanfare", "Ceremonial", "Patriotic",
    ),
}  # fmt: skip

# Flattened, de-duplicated, first-seen order
STYLES: tuple[str, ...] = tuple(
    dict.fromkeys(style for styles in GENRE_STYLE_MAP.values() for style in styles)
)

FORMATS: tuple[str, ...] = (
    "Vinyl",
    "LP",
    '7"',
    '10"',
    '12"',
    "CD",
    "Cassette",
    "Box Set",
    "Digital",
    "DVD",
    "Blu-ray",
    "Double LP",
    "Limited Edition",
    "Picture Disc",
    "Colored Vinyl",
)

DEFAULT_GENRE = "Rock"


def styles_for_genre(genre: str) -> tuple[str, ...]:
    """Styles known for a genre, empty for unknown genres."""
    return GENRE_STYLE_MAP.get(genre, ())
