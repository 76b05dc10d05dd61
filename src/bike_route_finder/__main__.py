from bike_route_finder.cli import main

main()
