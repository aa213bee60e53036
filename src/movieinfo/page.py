"""
=============================================================================
SEARCH PAGE
=============================================================================

The HTML document served when a request carries no title.

Everything is inlined (stylesheet and script) so the page is a single
response with no follow-up requests except the movie lookups themselves.

=============================================================================
HOW THE PAGE TALKS TO THE SERVER
=============================================================================

    Browser                                    MovieInfo server
       │                                              │
       │   GET /  ───────────────────────────────────►│  no title
       │◄──────────────────────────── search page ────│
       │                                              │
       │   [Search] clicked                           │
       │   GET /movies?title=Heat  ──────────────────►│  title = "Heat"
       │◄──────────── {"Title":"Heat",...,"Response":"True"}
       │                                              │
       │   displayMovieInformation(movie)             │
       │     Response == "True"  → fill the panel     │
       │     otherwise           → show movie.Error   │

=============================================================================
"""

import html


STYLESHEET = """
            body {
                color: #fff;
                background-color: #000;
                font-family: Roboto, Helvetica, Arial, sans-serif;
            }

            #title {
                font: bold 30px Roboto, Helvetica, Arial, sans-serif;
            }

            ul {
                list-style-type: none;
            }

            li {
                border-color: #484848;
                border-top-width: 2px;
                border-top-style: solid;
                padding: 6px;
            }

            #genres {
                margin-top: 20px;
                margin-bottom: 20px;
            }

            span {
                border: 1px solid white;
                border-radius: 1rem;
                margin: 5px;
                padding: 6px;
            }

            .centered-text {
                text-align: center;
            }

            .fixed-width {
                width: 50%;
            }

            .centered {
                margin-left: auto;
                margin-right: auto;
            }

            #movie-information {
                display: none;
            }
"""


# ─────────────────────────────────────────────────────────────────────────────
# CLIENT SCRIPT
# ─────────────────────────────────────────────────────────────────────────────
# Plain string, not an f-string: the JS template literals use ${...}.

SCRIPT = """
async function fetchMovieData(movieTitle) {
    try {
        const response = await fetch(`/movies?title=${encodeURIComponent(movieTitle)}`);
        return await response.json();
    } catch (error) {
        showError("There was an error, the query could not be performed");
        return null;
    }
}

function showError(message) {
    document.getElementById("title").innerHTML = message;
    document.getElementById("movie-information").style.display = "none";
}

function displayMovieInformation(movie) {
    if (movie === null) {
        return;
    }
    if (movie.Response == "True") {
        displayGeneralInformation(movie);
        displayGenres(movie);
        displayCredits(movie);
        displayPlotAndDetails(movie);
        document.getElementById("movie-information").style.display = "block";
    } else {
        showError(movie.Error);
    }
}

function displayGeneralInformation(movie) {
    document.getElementById("title").innerHTML = `${movie.Title} (${movie.Year})`;
    document.getElementById("poster").src = movie.Poster;
    document.getElementById("rated").innerHTML = `<b>Rated: </b>${movie.Rated}`;
    document.getElementById("released").innerHTML = `<b>Released: </b>${movie.Released}`;
}

function displayGenres(movie) {
    const genresDiv = document.getElementById("genres");
    genresDiv.innerHTML = "";
    movie.Genre.split(", ").forEach((genre) => {
        genresDiv.appendChild(document.createElement("span")).textContent = genre;
    });
}

function displayCredits(movie) {
    document.getElementById("director").innerHTML = `<b>Director: </b>${movie.Director}`;
    document.getElementById("writer").innerHTML = `<b>Writer: </b>${movie.Writer}`;
    document.getElementById("actors").innerHTML = `<b>Actors: </b>${movie.Actors}`;
}

function displayPlotAndDetails(movie) {
    document.getElementById("plot").innerHTML = movie.Plot;
    document.getElementById("language").innerHTML = `<b>Language: </b>${movie.Language}`;
    document.getElementById("country").innerHTML = `<b>Country: </b>${movie.Country}`;
    document.getElementById("awards").innerHTML = `<b>Awards: </b>${movie.Awards}`;
    displayRatings(movie.Ratings || []);
    document.getElementById("metascore").innerHTML = `<b>Metascore: </b>${movie.Metascore}`;
    document.getElementById("imdb-rating").innerHTML = `<b>IMDB Rating: </b>${movie.imdbRating}`;
    document.getElementById("imdb-votes").innerHTML = `<b>IMDB Votes: </b>${movie.imdbVotes}`;
    document.getElementById("imdb-id").innerHTML = `<b>IMDB ID: </b>${movie.imdbID}`;
    document.getElementById("type").innerHTML = `<b>Type: </b>${movie.Type}`;
    document.getElementById("dvd").innerHTML = `<b>DVD: </b>${movie.DVD}`;
    document.getElementById("box-office").innerHTML = `<b>Box Office: </b>${movie.BoxOffice}`;
    document.getElementById("production").innerHTML = `<b>Production: </b>${movie.Production}`;
    document.getElementById("website").innerHTML = `<b>Website: </b>${movie.Website}`;
}

function displayRatings(ratings) {
    const ratingsLi = document.getElementById("ratings");
    ratingsLi.innerHTML = "<b>Ratings: </b>";
    ratings.forEach((rating) => {
        ratingsLi.insertAdjacentText("beforeend", "[" + rating.Source + " - " + rating.Value + "] ");
    });
}

async function loadGetMsg() {
    const movieTitle = document.getElementById("movie-title").value;
    const movieData = await fetchMovieData(movieTitle);
    displayMovieInformation(movieData);
}
"""


# Order matters: it is the order rows appear in the detail list.
DETAIL_FIELDS = (
    "rated",
    "released",
    "director",
    "writer",
    "actors",
    "language",
    "country",
    "awards",
    "ratings",
    "metascore",
    "imdb-rating",
    "imdb-votes",
    "imdb-id",
    "type",
    "dvd",
    "box-office",
    "production",
    "website",
)


def generate_detail_list() -> str:
    """The <ul> of detail rows filled in by the script."""
    rows = "".join(
        f'            <li id="{field_id}"></li>\n' for field_id in DETAIL_FIELDS
    )
    return (
        '        <ul class="fixed-width centered">\n'
        + rows
        + "        </ul>\n"
    )


def generate_head() -> str:
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "    <head>\n"
        "        <title>Search movies</title>\n"
        '        <meta charset="UTF-8">\n'
        '        <meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "        <style>\n"
        + STYLESHEET
        + "        </style>\n"
        "    </head>\n"
    )


def generate_body(default_title: str) -> str:
    """
    The page body: search form, result panel, inline script.

    Args:
        default_title: Pre-filled search value (HTML-escaped here).
    """
    value = html.escape(default_title, quote=True)
    return (
        "    <body>\n"
        "        <h1>Search movies</h1>\n"
        '        <form onsubmit="loadGetMsg(); return false;">\n'
        '            <label for="movie-title">Movie title:</label><br>\n'
        f'            <input type="text" id="movie-title" name="title" value="{value}"><br><br>\n'
        '            <input type="button" value="Search" onclick="loadGetMsg()">\n'
        "        </form>\n"
        '        <div id="title" class="centered-text"></div>\n'
        '        <div id="movie-information">\n'
        '            <div id="img-movie" class="centered-text"><img id="poster" src=""/></div>\n'
        '            <div id="genres" class="centered-text fixed-width centered"></div>\n'
        '            <div id="plot" class="centered-text fixed-width centered"></div>\n'
        + generate_detail_list()
        + "        </div>\n"
        "\n"
        "        <script>\n"
        + SCRIPT
        + "        </script>\n"
        "\n"
        "    </body>\n"
        "</html>"
    )


def generate_default_html(default_title: str = "Guardians of the galaxy") -> str:
    """
    Build the complete search page.

    Pure function of its argument: the same title always produces the
    same document, byte for byte.
    """
    return generate_head() + generate_body(default_title)
