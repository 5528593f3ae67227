from orbit_feed.cli import main

main()
