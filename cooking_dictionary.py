"""
Offline cooking vocabulary (English -> Spanish).

Used for dictionary translation, the guaranteed-success path of the
translation engine, and for the language detector's indicator lists.
"""

import re
from typing import Dict

COOKING_TRANSLATIONS: Dict[str, str] = {
    # Measurements
    "cup": "taza",
    "cups": "tazas",
    "tablespoon": "cucharada",
    "tablespoons": "cucharadas",
    "teaspoon": "cucharadita",
    "teaspoons": "cucharaditas",
    "ounce": "onza",
    "ounces": "onzas",
    "pound": "libra",
    "pounds": "libras",
    "pinch": "pizca",
    "dash": "pizca",
    "clove": "diente",
    "cloves": "dientes",
    "slice": "rebanada",
    "slices": "rebanadas",
    "can": "lata",
    "cans": "latas",

    # Ingredients
    "butter": "mantequilla",
    "sugar": "azúcar",
    "brown sugar": "azúcar moreno",
    "flour": "harina",
    "salt": "sal",
    "pepper": "pimienta",
    "black pepper": "pimienta negra",
    "water": "agua",
    "milk": "leche",
    "cream": "nata",
    "heavy cream": "nata para montar",
    "egg": "huevo",
    "eggs": "huevos",
    "egg yolks": "yemas de huevo",
    "chicken": "pollo",
    "chicken breast": "pechuga de pollo",
    "beef": "carne de res",
    "pork": "cerdo",
    "fish": "pescado",
    "onion": "cebolla",
    "onions": "cebollas",
    "garlic": "ajo",
    "garlic cloves": "dientes de ajo",
    "olive oil": "aceite de oliva",
    "vegetable oil": "aceite vegetal",
    "oil": "aceite",
    "cheese": "queso",
    "bread": "pan",
    "rice": "arroz",
    "pasta": "pasta",
    "bacon": "panceta",
    "tomato": "tomate",
    "tomatoes": "tomates",
    "potato": "patata",
    "potatoes": "patatas",
    "carrot": "zanahoria",
    "carrots": "zanahorias",
    "celery": "apio",
    "bell pepper": "pimiento",
    "mushroom": "champiñón",
    "mushrooms": "champiñones",
    "spinach": "espinacas",
    "broccoli": "brócoli",
    "lemon": "limón",
    "lemon juice": "zumo de limón",
    "orange": "naranja",
    "apple": "manzana",
    "banana": "plátano",
    "strawberry": "fresa",
    "strawberries": "fresas",
    "vanilla": "vainilla",
    "vanilla extract": "extracto de vainilla",
    "cinnamon": "canela",
    "baking powder": "polvo de hornear",
    "baking soda": "bicarbonato de sodio",
    "yeast": "levadura",
    "honey": "miel",
    "maple syrup": "sirope de arce",
    "chocolate": "chocolate",
    "cocoa powder": "cacao en polvo",
    "nuts": "frutos secos",
    "almonds": "almendras",
    "walnuts": "nueces",
    "peanuts": "cacahuetes",
    "peanut butter": "mantequilla de cacahuete",
    "soy sauce": "salsa de soja",
    "vinegar": "vinagre",
    "wine": "vino",
    "white wine": "vino blanco",
    "red wine": "vino tinto",
    "broth": "caldo",
    "chicken broth": "caldo de pollo",
    "beef broth": "caldo de carne",
    "stock": "caldo",

    # Actions
    "preheat": "precalentar",
    "bake": "hornear",
    "cook": "cocinar",
    "fry": "freír",
    "sauté": "saltear",
    "boil": "hervir",
    "simmer": "cocer a fuego lento",
    "stir": "remover",
    "mix": "mezclar",
    "combine": "combinar",
    "add": "añadir",
    "pour": "verter",
    "heat": "calentar",
    "chop": "picar",
    "dice": "cortar en cubos",
    "mince": "picar finamente",
    "grate": "rallar",
    "whisk": "batir",
    "beat": "batir",
    "fold": "incorporar",
    "knead": "amasar",
    "marinate": "marinar",
    "season": "sazonar",
    "serve": "servir",
    "garnish": "decorar",
    "drain": "escurrir",
    "strain": "colar",
    "refrigerate": "refrigerar",
    "freeze": "congelar",
    "thaw": "descongelar",
    "rest": "reposar",
    "cool": "enfriar",

    # Descriptors
    "chopped": "picado",
    "diced": "en cubos",
    "sliced": "en rodajas",
    "minced": "picado finamente",
    "grated": "rallado",
    "melted": "derretido",
    "softened": "ablandado",
    "beaten": "batido",
    "fresh": "fresco",
    "dried": "seco",
    "ground": "molido",
    "crushed": "machacado",
    "whole": "entero",
    "large": "grande",
    "medium": "mediano",
    "small": "pequeño",
    "optional": "opcional",
    "to taste": "al gusto",

    # Time, temperature, equipment
    "minutes": "minutos",
    "minute": "minuto",
    "hours": "horas",
    "hour": "hora",
    "degrees": "grados",
    "oven": "horno",
    "pan": "sartén",
    "pot": "olla",
    "bowl": "bol",
    "baking sheet": "bandeja de horno",
    "skillet": "sartén",
}

ENGLISH_INDICATORS = frozenset([
    # recipe words
    "cup", "cups", "tablespoon", "tablespoons", "teaspoon", "teaspoons",
    "tbsp", "tsp", "ounce", "ounces", "pound", "pounds", "oz", "lb", "lbs",
    "chopped", "minced", "diced", "sliced", "grated", "melted", "beaten",
    "fresh", "dried", "ground", "large", "medium", "small", "optional",
    # instructions
    "preheat", "oven", "bake", "cook", "stir", "mix", "combine", "add",
    "pour", "heat", "boil", "simmer", "fry", "sauté", "serve", "let",
    "minutes", "hours", "until", "about", "degrees", "temperature",
    # ingredients
    "butter", "sugar", "flour", "salt", "pepper", "water", "milk", "cream",
    "eggs", "egg", "chicken", "beef", "pork", "fish", "onion", "garlic",
    "oil", "olive", "vegetable", "cheese", "bread", "rice", "pasta",
    # articles and prepositions
    "the", "and", "with", "into", "from", "for", "then", "when",
])

SPANISH_INDICATORS = frozenset([
    "taza", "tazas", "cucharada", "cucharadas", "cucharadita", "cucharaditas",
    "gramos", "litros", "mililitros", "picado", "picada", "cortado", "rallado",
    "fresco", "seco", "molido", "grande", "mediano", "pequeño", "opcional",
    "precalentar", "horno", "hornear", "cocinar", "mezclar", "añadir", "agregar",
    "verter", "calentar", "hervir", "freír", "servir", "dejar", "minutos",
    "horas", "hasta", "grados", "temperatura", "mantequilla", "azúcar", "harina",
    "sal", "pimienta", "agua", "leche", "nata", "huevos", "huevo", "pollo",
    "carne", "cerdo", "pescado", "cebolla", "ajo", "aceite", "queso", "pan",
    "arroz", "el", "la", "los", "las", "con", "para", "luego", "cuando", "sobre",
])

# One alternation, longest terms first, so "olive oil" wins over "oil" and
# replaced text is never scanned again ("bread" -> "pan" stays "pan").
_TERMS = sorted(COOKING_TRANSLATIONS, key=len, reverse=True)
_TERM_PATTERN = re.compile(
    r'\b(?:' + '|'.join(re.escape(term) for term in _TERMS) + r')\b',
    re.IGNORECASE,
)


def _replace(match: re.Match) -> str:
    found = match.group(0)
    spanish = COOKING_TRANSLATIONS.get(found.lower(), found)
    if found[0].isupper():
        return spanish[0].upper() + spanish[1:]
    return spanish


def translate_with_dictionary(text: str) -> str:
    """
    Substitute known cooking terms, leaving everything else untouched.

    Matching is case-insensitive and word-bounded; a capitalized source word
    yields a capitalized translation. Never fails.
    """
    if not text:
        return text
    return _TERM_PATTERN.sub(_replace, text)
