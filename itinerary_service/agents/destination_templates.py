"""Pre-built itineraries for popular destinations.

Each template is a list of dateless day skeletons. The catalog turns them into
dated :class:`~itinerary_service.schemas.Day` models for a concrete request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Template:
    destination: str
    aliases: Tuple[str, ...]
    duration: int
    days: Tuple[Dict[str, Any], ...]
    highlights: Tuple[str, ...] = ()
    tips: Tuple[str, ...] = ()


def _act(
    id: str,
    time: str,
    title: str,
    description: str,
    duration: str,
    location: str,
    price: float,
    category: str,
    tips: Optional[List[str]] = None,
) -> Dict[str, Any]:
    return {
        "id": id,
        "time": time,
        "title": title,
        "description": description,
        "duration": duration,
        "location": location,
        "price": price,
        "category": category,
        "tips": list(tips or []),
    }


def _meal(type: str, venue: str, cuisine: str, price: float) -> Dict[str, Any]:
    return {"type": type, "venue": venue, "cuisine": cuisine, "price": price}


def _hotel(name: str, price: float, location: str) -> Dict[str, Any]:
    return {"name": name, "type": "hotel", "price": price, "location": location}


def _day(
    title: str,
    description: str,
    activities: List[Dict[str, Any]],
    accommodation: Optional[Dict[str, Any]],
    meals: List[Dict[str, Any]],
) -> Dict[str, Any]:
    return {
        "title": title,
        "description": description,
        "activities": activities,
        "accommodation": accommodation,
        "meals": meals,
    }


# ------- Paris, France (4 days) -------
_PARIS_HOTEL = _hotel("Hotel des Grands Boulevards", 200, "Central Paris")

PARIS = Template(
    destination="Paris, France",
    aliases=("paris", "paris france", "france paris", "paris, france"),
    duration=4,
    days=(
        _day(
            "Iconic Paris Landmarks",
            "Eiffel Tower and Champs-Élysées",
            [
                _act("paris_d1_a1", "09:00", "Eiffel Tower Visit", "Skip-the-line access to all levels",
                     "3 hours", "Eiffel Tower", 85, "sightseeing", ["Book the summit slot online"]),
                _act("paris_d1_a2", "14:00", "Arc de Triomphe & Champs-Élysées",
                     "Walk the famous avenue and climb the Arc", "3 hours", "Champs-Élysées", 25, "sightseeing"),
                _act("paris_d1_a3", "19:00", "Seine River Dinner Cruise", "Gourmet meal with Paris illuminations",
                     "2.5 hours", "Seine River", 120, "dining"),
            ],
            _PARIS_HOTEL,
            [
                _meal("breakfast", "Café de Flore", "French", 25),
                _meal("lunch", "Bistro near Eiffel", "French", 35),
            ],
        ),
        _day(
            "Art & the Left Bank",
            "The Louvre, Saint-Germain and the Latin Quarter",
            [
                _act("paris_d2_a1", "09:00", "Louvre Museum Highlights Tour",
                     "Mona Lisa, Venus de Milo and the Winged Victory with a guide",
                     "3 hours", "Musée du Louvre", 75, "tour", ["Enter through the Carrousel entrance"]),
                _act("paris_d2_a2", "13:30", "Lunch in Saint-Germain", "Classic brasserie lunch",
                     "1.5 hours", "Saint-Germain-des-Prés", 40, "dining"),
                _act("paris_d2_a3", "15:30", "Musée d'Orsay", "Impressionist masterpieces in a former railway station",
                     "2.5 hours", "Musée d'Orsay", 16, "culture"),
            ],
            _PARIS_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("dinner", "Le Procope", "French", 55),
            ],
        ),
        _day(
            "Montmartre & Notre-Dame",
            "Hilltop village charm and the Île de la Cité",
            [
                _act("paris_d3_a1", "09:30", "Montmartre Walking Tour", "Sacré-Cœur, Place du Tertre and hidden vineyards",
                     "2.5 hours", "Montmartre", 30, "tour"),
                _act("paris_d3_a2", "13:00", "Notre-Dame & Sainte-Chapelle", "Gothic cathedral and stained glass",
                     "2.5 hours", "Île de la Cité", 13, "sightseeing"),
                _act("paris_d3_a3", "16:30", "Marais Food Walk", "Falafel, cheese shops and patisseries",
                     "2 hours", "Le Marais", 65, "food"),
            ],
            _PARIS_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("dinner", "Bouillon Chartier", "French", 30),
            ],
        ),
        _day(
            "Versailles & Farewell",
            "Royal palace and gardens before departure",
            [
                _act("paris_d4_a1", "08:30", "Palace of Versailles", "Hall of Mirrors, royal apartments and gardens",
                     "4 hours", "Versailles", 32, "tour", ["Trains leave from RER C stations"]),
                _act("paris_d4_a2", "13:30", "Farewell Lunch", "Last taste of French cuisine",
                     "1.5 hours", "Versailles", 35, "dining"),
                _act("paris_d4_a3", "16:00", "Airport Transfer", "Private transfer to Charles de Gaulle",
                     "1 hour", "CDG Airport", 60, "transfer"),
            ],
            None,
            [_meal("breakfast", "Hotel Restaurant", "Continental", 0)],
        ),
    ),
    highlights=("Eiffel Tower", "Louvre Museum", "Notre-Dame", "Montmartre", "Versailles"),
    tips=("Book skip-the-line tickets", "Learn basic French phrases", "Validate metro tickets"),
)


# ------- Rome, Italy (3 days) -------
_ROME_HOTEL = _hotel("Hotel de Russie", 250, "Central Rome")

ROME = Template(
    destination="Rome, Italy",
    aliases=("rome", "rome italy", "italy rome", "roma", "rome, italy"),
    duration=3,
    days=(
        _day(
            "Ancient Rome",
            "Colosseum, Forum, and Palatine",
            [
                _act("rome_d1_a1", "08:30", "Colosseum Skip-the-Line Tour", "Gladiator entrance and arena floor",
                     "3 hours", "Colosseum", 65, "tour"),
                _act("rome_d1_a2", "12:00", "Roman Forum & Palatine Hill", "Heart of ancient Rome",
                     "3 hours", "Roman Forum", 30, "history"),
                _act("rome_d1_a3", "17:00", "Sunset at Capitoline Hill", "Views over the Forum",
                     "1.5 hours", "Capitoline Hill", 0, "sightseeing"),
            ],
            _ROME_HOTEL,
            [
                _meal("breakfast", "Local Café", "Italian", 15),
                _meal("lunch", "Trattoria", "Roman", 30),
                _meal("dinner", "Trastevere", "Italian", 45),
            ],
        ),
        _day(
            "Vatican City",
            "Museums, Sistine Chapel and St. Peter's",
            [
                _act("rome_d2_a1", "08:00", "Vatican Museums & Sistine Chapel", "Early entry guided tour",
                     "3.5 hours", "Vatican City", 80, "tour", ["Shoulders and knees must be covered"]),
                _act("rome_d2_a2", "12:30", "St. Peter's Basilica & Dome Climb", "Michelangelo's dome and city views",
                     "2 hours", "St. Peter's Square", 10, "sightseeing"),
                _act("rome_d2_a3", "19:30", "Trastevere Food Tour", "Supplì, cacio e pepe and gelato",
                     "3 hours", "Trastevere", 90, "food"),
            ],
            _ROME_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("lunch", "Pizzarium", "Pizza al taglio", 15),
            ],
        ),
        _day(
            "Fountains & Piazzas",
            "Baroque Rome on foot before departure",
            [
                _act("rome_d3_a1", "09:00", "Trevi Fountain & Spanish Steps", "Toss a coin and climb the steps",
                     "2 hours", "Centro Storico", 0, "sightseeing", ["Go early to avoid the crowds"]),
                _act("rome_d3_a2", "11:30", "Pantheon & Piazza Navona", "Ancient temple and Bernini's fountains",
                     "2 hours", "Centro Storico", 5, "culture"),
                _act("rome_d3_a3", "15:00", "Airport Transfer", "Private transfer to Fiumicino",
                     "1 hour", "Fiumicino Airport", 55, "transfer"),
            ],
            None,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("lunch", "Armando al Pantheon", "Roman", 40),
            ],
        ),
    ),
    highlights=("Vatican City", "Sistine Chapel", "Trevi Fountain", "Pantheon", "Spanish Steps"),
    tips=("Book Vatican early", "Avoid August heat", "Validate bus tickets", "Dress modestly for churches"),
)


# ------- Tokyo, Japan (5 days) -------
_TOKYO_HOTEL = _hotel("Shinjuku Granbell Hotel", 150, "Shinjuku")

TOKYO = Template(
    destination="Tokyo, Japan",
    aliases=("tokyo", "tokyo japan", "japan tokyo", "tokyo, japan"),
    duration=5,
    days=(
        _day(
            "Modern Tokyo",
            "Shibuya, Harajuku, and Shinjuku",
            [
                _act("tokyo_d1_a1", "09:00", "Shibuya Crossing & Hachiko", "World's busiest crossing",
                     "2 hours", "Shibuya", 0, "sightseeing"),
                _act("tokyo_d1_a2", "11:30", "Harajuku & Takeshita Street", "Youth culture and shopping",
                     "3 hours", "Harajuku", 0, "culture"),
                _act("tokyo_d1_a3", "18:00", "Omoide Yokocho Evening", "Yakitori alleys under the tracks",
                     "2 hours", "Shinjuku", 40, "dining"),
            ],
            _TOKYO_HOTEL,
            [
                _meal("breakfast", "Hotel", "Continental", 0),
                _meal("lunch", "Ramen Street", "Ramen", 15),
            ],
        ),
        _day(
            "Traditional Tokyo",
            "Asakusa temples and the Sumida riverside",
            [
                _act("tokyo_d2_a1", "08:30", "Senso-ji Temple", "Tokyo's oldest temple and Nakamise street",
                     "2 hours", "Asakusa", 0, "culture", ["Arrive before 9am for a quiet visit"]),
                _act("tokyo_d2_a2", "11:00", "Sumida River Cruise", "Water bus from Asakusa to Hamarikyu",
                     "1 hour", "Sumida River", 12, "tour"),
                _act("tokyo_d2_a3", "15:00", "Tokyo Skytree", "Observation deck at 450 meters",
                     "2 hours", "Oshiage", 25, "sightseeing"),
            ],
            _TOKYO_HOTEL,
            [
                _meal("breakfast", "Hotel", "Continental", 0),
                _meal("lunch", "Tempura Daikokuya", "Tempura", 20),
                _meal("dinner", "Monja Street", "Monjayaki", 30),
            ],
        ),
        _day(
            "Markets & Gardens",
            "Tsukiji outer market and imperial gardens",
            [
                _act("tokyo_d3_a1", "07:30", "Tsukiji Outer Market Food Walk", "Fresh sushi, tamagoyaki and street snacks",
                     "2.5 hours", "Tsukiji", 50, "food"),
                _act("tokyo_d3_a2", "11:00", "Imperial Palace East Gardens", "Edo castle ruins and seasonal blooms",
                     "2 hours", "Chiyoda", 0, "sightseeing"),
                _act("tokyo_d3_a3", "15:00", "teamLab Planets", "Immersive digital art museum",
                     "2 hours", "Toyosu", 30, "culture"),
            ],
            _TOKYO_HOTEL,
            [
                _meal("breakfast", "Tsukiji stalls", "Japanese", 0),
                _meal("dinner", "Izakaya", "Japanese", 40),
            ],
        ),
        _day(
            "Mount Fuji Day Trip",
            "Lake Kawaguchi and the Fuji Five Lakes",
            [
                _act("tokyo_d4_a1", "07:00", "Mount Fuji & Lake Kawaguchi Tour",
                     "Guided coach tour with panoramic stops", "10 hours", "Fuji Five Lakes", 120, "excursion",
                     ["Clear mornings give the best views"]),
            ],
            _TOKYO_HOTEL,
            [
                _meal("breakfast", "Hotel", "Continental", 0),
                _meal("lunch", "Hoto Fudo", "Hoto noodles", 18),
                _meal("dinner", "Conveyor-belt sushi", "Sushi", 25),
            ],
        ),
        _day(
            "Akihabara & Departure",
            "Electric town before heading to the airport",
            [
                _act("tokyo_d5_a1", "10:00", "Akihabara Electric Town", "Anime, manga and retro game shops",
                     "2.5 hours", "Akihabara", 0, "culture"),
                _act("tokyo_d5_a2", "15:00", "Airport Transfer", "Limousine bus to Narita",
                     "1.5 hours", "Narita Airport", 30, "transport"),
            ],
            None,
            [
                _meal("breakfast", "Hotel", "Continental", 0),
                _meal("lunch", "Gyukatsu Motomura", "Japanese", 18),
            ],
        ),
    ),
    highlights=("Senso-ji Temple", "Tokyo Skytree", "Tsukiji Market", "Mount Fuji day trip"),
    tips=("Get a JR Pass", "Download translation app", "Cash is king", "Remove shoes indoors"),
)


# ------- Lima, Peru (5 days) -------
_LIMA_HOTEL = _hotel("Miraflores Park Hotel", 180, "Miraflores, Lima")

LIMA = Template(
    destination="Lima, Peru",
    aliases=("lima", "lima peru", "peru lima", "lima, peru", "lima,peru"),
    duration=5,
    days=(
        _day(
            "Arrival & Historic Center Exploration",
            "Discover Lima's colonial heart and culinary scene",
            [
                _act("lima_d1_a1", "09:00", "Lima City Tour - Historic Center",
                     "Explore Plaza Mayor, Cathedral, and Government Palace with expert guide",
                     "4 hours", "Historic Center, Lima", 65, "tour"),
                _act("lima_d1_a2", "14:00", "Lunch at Central Restaurant", "Experience world-renowned Peruvian cuisine",
                     "2 hours", "Barranco, Lima", 150, "dining"),
                _act("lima_d1_a3", "17:00", "Barranco Art District Walk", "Stroll through bohemian streets and colorful murals",
                     "2 hours", "Barranco, Lima", 0, "culture"),
            ],
            _LIMA_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("dinner", "La Mar Cebichería", "Seafood", 45),
            ],
        ),
        _day(
            "Pre-Columbian History & Culinary Experience",
            "Ancient civilizations and modern gastronomy",
            [
                _act("lima_d2_a1", "09:00", "Larco Museum Tour",
                     "Discover Peru's pre-Columbian history with gold and ceramics collection",
                     "3 hours", "Pueblo Libre, Lima", 45, "culture"),
                _act("lima_d2_a2", "14:00", "Lima Gourmet Food Tour", "Market visit, ceviche making, and pisco sour tasting",
                     "4 hours", "Miraflores, Lima", 89, "tour"),
                _act("lima_d2_a3", "20:00", "Magic Water Circuit", "Spectacular fountain show with lights and music",
                     "1.5 hours", "Parque de la Reserva, Lima", 15, "entertainment"),
            ],
            _LIMA_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("lunch", "During Food Tour", "Peruvian", 0),
                _meal("dinner", "Maido", "Nikkei", 120),
            ],
        ),
        _day(
            "Pachacamac Ruins & Coastal Adventure",
            "Ancient temple complex and Pacific coast exploration",
            [
                _act("lima_d3_a1", "08:00", "Pachacamac Archaeological Site Tour", "Visit pre-Inca temple complex with ocean views",
                     "4 hours", "Pachacamac, South Lima", 75, "tour"),
                _act("lima_d3_a2", "13:00", "Lunch in Barranco", "Traditional Peruvian lunch with ocean view",
                     "1.5 hours", "Barranco, Lima", 35, "dining"),
                _act("lima_d3_a3", "15:30", "Paragliding over Costa Verde", "Soar above Lima's coastline (weather permitting)",
                     "1 hour", "Miraflores Cliffs", 120, "adventure"),
            ],
            _LIMA_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("dinner", "Astrid y Gastón", "Contemporary Peruvian", 95),
            ],
        ),
        _day(
            "Lima Markets & Cooking Class",
            "Immerse in local culture through food",
            [
                _act("lima_d4_a1", "08:00", "Surquillo Market Tour", "Explore local market with exotic fruits and ingredients",
                     "2 hours", "Surquillo, Lima", 25, "culture"),
                _act("lima_d4_a2", "10:30", "Peruvian Cooking Class", "Learn to make ceviche, lomo saltado, and pisco sour",
                     "4 hours", "Miraflores, Lima", 95, "experience"),
                _act("lima_d4_a3", "16:00", "Huaca Pucllana Twilight Tour", "Pre-Inca pyramid in the heart of Miraflores",
                     "1.5 hours", "Miraflores, Lima", 20, "culture"),
            ],
            _LIMA_HOTEL,
            [
                _meal("breakfast", "Hotel Restaurant", "Continental", 0),
                _meal("lunch", "During Cooking Class", "Peruvian", 0),
                _meal("dinner", "Rafael", "Contemporary", 85),
            ],
        ),
        _day(
            "Departure Day - Last Minute Shopping",
            "Final souvenirs and airport transfer",
            [
                _act("lima_d5_a1", "09:00", "Indian Market Shopping", "Find alpaca wool products, handicrafts, and souvenirs",
                     "2 hours", "Miraflores, Lima", 0, "shopping"),
                _act("lima_d5_a2", "12:00", "Farewell Lunch", "Final taste of Lima's cuisine",
                     "1.5 hours", "Miraflores, Lima", 40, "dining"),
                _act("lima_d5_a3", "15:00", "Airport Transfer", "Private transfer to Jorge Chávez International Airport",
                     "45 minutes", "Lima Airport", 35, "transport"),
            ],
            None,
            [_meal("breakfast", "Hotel Restaurant", "Continental", 0)],
        ),
    ),
    highlights=(
        "UNESCO World Heritage Historic Center",
        "World's top culinary destination",
        "Pre-Columbian art at Larco Museum",
        "Bohemian Barranco district",
        "Pacific Ocean paragliding",
    ),
    tips=(
        "Lima weather is mild year-round but bring layers for fog",
        "Book restaurant reservations in advance (Central, Maido)",
        "Airport is 45-60 minutes from Miraflores in traffic",
        "Use registered taxis or Uber for safety",
        "Try ceviche for lunch when fish is freshest",
    ),
)


DEFAULT_TEMPLATES: Tuple[Template, ...] = (LIMA, PARIS, TOKYO, ROME)
